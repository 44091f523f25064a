"""Tests for exception hierarchy and correlation ID support."""

import uuid

from relay.exceptions import (
    ApprovalError,
    BackendError,
    ConfigurationError,
    DecodeError,
    DeliveryError,
    RelayError,
)


class TestRelayError:
    """Test base RelayError class."""

    def test_auto_generates_correlation_id(self):
        error = RelayError("Test error")
        uuid.UUID(error.correlation_id)

    def test_accepts_custom_correlation_id(self):
        error = RelayError("Test error", correlation_id="abc")
        assert error.correlation_id == "abc"

    def test_message_propagation(self):
        assert str(RelayError("Test message")) == "Test message"


class TestSubclasses:
    def test_all_inherit_from_base(self):
        for cls in (ApprovalError, BackendError, ConfigurationError, DecodeError, DeliveryError):
            assert issubclass(cls, RelayError)
            assert cls("x").correlation_id

    def test_backend_error_model(self):
        error = BackendError("stream died", model="claude-opus-4-6", correlation_id="c1")
        assert error.model == "claude-opus-4-6"
        assert error.correlation_id == "c1"

    def test_decode_error_raw_type(self):
        assert DecodeError("bad", raw_type="assistant").raw_type == "assistant"
