"""Exception types raised by the client components."""

from __future__ import annotations


class JyutpingClientError(Exception):
    """Base class for all client errors."""


class FatalInitError(JyutpingClientError):
    """The dictionary could not be acquired or the engine could not be built.

    Search stays disabled until a new bootstrap succeeds.
    """


class StoreError(JyutpingClientError):
    """The persistent store could not be opened, read, or written."""


class ProtocolError(JyutpingClientError, ValueError):
    """The engine returned malformed JSON or an unexpected payload shape."""


class SpanError(JyutpingClientError, ValueError):
    """A match span lies outside the text it refers to."""
