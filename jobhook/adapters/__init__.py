"""External adapters for the jobhook callback receiver.

This package contains all external dependencies (HTTP server, outbound
HTTP client, stores) and provides implementations of the core port
interfaces.

Adapter Organization:

- store/: Adapters for callback history storage (in-memory)
- sinks/: Adapters for post-callback side effects (logging, HTTP forward)
- webhook/: HTTP webhook receiver for partner callbacks
- cli/: Command-line signing and smoke-test helper
"""
