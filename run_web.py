#!/usr/bin/env python3
"""
Main entry point for the Squad Clock web API.

This script launches the Flask-based JSON server.
"""
from squadclock.config import Config
from squadclock.ui.web_app import run_web_app

if __name__ == "__main__":
    run_web_app(config=Config)
