"""Web module.

This module provides the Flask issuing application.
"""

from .app import app, initialize_app, run_server

__all__ = [
    "app",
    "initialize_app",
    "run_server",
]
