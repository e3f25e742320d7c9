"""Command-line interface adapters.

Provides CLI commands for working with partner callbacks:
- sign: Print the X-Signature header for a payload, optionally send it
"""
