"""Event sink adapters for side effects after a callback is recorded.

Implementations:
- Logger (status update, notification and workflow placeholders)
- HTTP forward (POST the event to a downstream URL)
"""
