"""Test suite for the jobhook callback receiver.

Organized into three categories:

1. core/: Unit tests for core domain logic
   - Minimal dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Integration tests for adapter implementations
   - Real HTTP server on localhost, mocked outbound HTTP
   - Validates adapter behavior and error handling

3. fakes/: Port implementations for testing
   - In-memory implementation of EventSinkPort
"""
