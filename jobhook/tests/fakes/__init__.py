"""Fake/mock implementations of core ports for testing.

- FakeEventSinkPort: Captured events for assertion, optional failure
"""

from .sink import FakeEventSinkPort

__all__ = ["FakeEventSinkPort"]
