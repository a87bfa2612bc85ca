"""Application composition layer for the Tkinter GUI.

``main.App`` wires the view, the UI context and worker pool, the
continuation dispatcher and the three handler use cases.
"""
