"""ViewModel package for UI state.

Call context:
    ``crossthread/app/main.py`` binds the window's text widget to
    ``TextFieldVM``; the handler use cases mutate it.

Responsibilities:
    - Hold UI state the view renders.
    - Refuse mutations that do not carry a token for the UI context.
"""
