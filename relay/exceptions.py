"""Relay exception hierarchy.

Base exceptions for all relay layers with correlation ID support.

Usage:
    from relay.exceptions import BackendError, RelayError

    try:
        await run_request(runtime, prompt)
    except BackendError as e:
        logger.error("Backend failed (%s)", e.correlation_id)
"""

import uuid


class RelayError(Exception):
    """Base exception for all relay errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class DecodeError(RelayError):
    """A raw backend message could not be decoded into a known event.

    Never surfaced to the user; the decoder logs and skips the message.
    """

    def __init__(self, message: str, *, raw_type: str | None = None, **kwargs):
        self.raw_type = raw_type
        super().__init__(message, **kwargs)


class BackendError(RelayError):
    """Errors from the agent backend stream."""

    def __init__(self, message: str, *, model: str | None = None, **kwargs):
        self.model = model
        super().__init__(message, **kwargs)


class ApprovalError(RelayError):
    """Misuse of the approval gate (e.g. a duplicate approval id)."""

    pass


class DeliveryError(RelayError):
    """Errors raised by a delivery sink. Logged and swallowed by SafeSink."""

    pass


class ConfigurationError(RelayError):
    """Errors from relay configuration."""

    pass
