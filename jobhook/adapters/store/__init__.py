"""Callback store adapters for per-job history.

Implementations:
- Memory (process-lifetime dict of lists, lost on restart)
"""
