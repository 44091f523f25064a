"""Unit tests for delivery splitting and the SafeSink wrapper."""

from unittest.mock import AsyncMock

import pytest

from relay.streaming.delivery import DeliverySink, SafeSink, split_for_delivery
from tests.mocks import RecordingSink


class TestSplitForDelivery:
    """Tests for split_for_delivery()."""

    def test_short_text_unchanged(self):
        assert split_for_delivery("hello", 4000) == ["hello"]

    def test_empty_text(self):
        assert split_for_delivery("", 4000) == []

    def test_prefers_paragraph_break(self):
        text = "a" * 60 + "\n\n" + "b" * 60
        assert split_for_delivery(text, 100) == ["a" * 60, "b" * 60]

    def test_falls_back_to_newline_then_space(self):
        text = "a" * 60 + "\n" + "b" * 60
        assert split_for_delivery(text, 100) == ["a" * 60, "b" * 60]

        text = "a" * 60 + " " + "b" * 60
        assert split_for_delivery(text, 100) == ["a" * 60, "b" * 60]

    def test_hard_cut_without_whitespace(self):
        pieces = split_for_delivery("x" * 250, 100)
        assert pieces == ["x" * 100, "x" * 100, "x" * 50]

    def test_pieces_respect_limit(self):
        text = ("word " * 2000).strip()
        pieces = split_for_delivery(text, 4000)
        assert all(len(p) <= 4000 for p in pieces)
        assert " ".join(pieces).split() == text.split()

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            split_for_delivery("abc", 0)


class TestSafeSink:
    """Tests for SafeSink."""

    def test_recording_sink_satisfies_protocol(self):
        assert isinstance(RecordingSink(), DeliverySink)

    @pytest.mark.asyncio
    async def test_chunk_is_split(self):
        inner = RecordingSink()
        sink = SafeSink(inner, chunk_limit=100)
        await sink.chunk("a" * 60 + "\n\n" + "b" * 60)
        assert inner.chunks == ["a" * 60, "b" * 60]
        assert sink.delivered == inner.chunks

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self, caplog):
        inner = AsyncMock()
        inner.emit_chunk.side_effect = RuntimeError("socket closed")
        inner.emit_warning.side_effect = RuntimeError("socket closed")
        sink = SafeSink(inner)

        await sink.chunk("hello")
        await sink.warning("careful")
        await sink.error("oops")

        assert sink.delivered == []
        inner.emit_error.assert_awaited_once_with("oops")
        assert "Delivery sink emit_chunk failed" in caplog.text

    @pytest.mark.asyncio
    async def test_notifications_forwarded(self):
        inner = RecordingSink()
        sink = SafeSink(inner)
        await sink.queued()
        await sink.working()
        await sink.working()
        assert inner.queued == 1
        assert inner.working == 2
