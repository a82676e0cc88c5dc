"""
Holder - Command Line Interface

Entry point for the ``holder`` console script.
"""
from cli.main import app, main

__all__ = ["app", "main"]
