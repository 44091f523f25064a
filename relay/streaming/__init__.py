"""Streaming module: decoding, turn segmentation, flushing and delivery.

Provides the independently testable pieces that turn an irregular backend
event stream into ordered, word-safe output chunks.
"""

from relay.streaming.decoder import decode_message, decode_stream
from relay.streaming.delivery import DeliverySink, SafeSink, split_for_delivery
from relay.streaming.events import Event, Init, Result, SystemNotice, TextDelta, ToolInvocation
from relay.streaming.flush import FlushScheduler, FlushTrigger, select_cut
from relay.streaming.segmenter import Turn, TurnSegmenter

__all__ = [
    "DeliverySink",
    "Event",
    "FlushScheduler",
    "FlushTrigger",
    "Init",
    "Result",
    "SafeSink",
    "SystemNotice",
    "TextDelta",
    "ToolInvocation",
    "Turn",
    "TurnSegmenter",
    "decode_message",
    "decode_stream",
    "select_cut",
    "split_for_delivery",
]
