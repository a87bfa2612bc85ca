"""Adapter package for external I/O implementations.

Purpose:
    Collect concrete implementations of ``TextSourcePort`` (HTTP and an
    offline stub) used by the slow operation.

Dependencies:
    ``page_text_rest`` and ``http_client`` depend on ``requests``; the stub
    depends on the domain port only.

Call context:
    Imported by ``crossthread/app/main.py`` for runtime wiring and by tests.
"""
