"""
UI package for the Squad Clock.

This package contains the Flask JSON API used by presentation clients.
"""
from .web_app import create_app, run_web_app, WebAppState

__all__ = ["create_app", "run_web_app", "WebAppState"]
