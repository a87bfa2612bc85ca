"""Use-case layer: the continuation dispatcher and the three button handlers.

Each handler module coordinates the dispatcher, the operations and the text
field view-model without performing transport I/O directly.
"""
