"""Flush scheduler: decide when and where to cut a turn into chunks.

A turn's unsent tail is flushed when it holds a paragraph break, grows
large, or goes stale. The cut lands on a paragraph break, a sentence end or
a space so delivered chunks never end mid-word; only a tail with no such
boundary is hard-cut at its end.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from relay.streaming.segmenter import Turn

logger = logging.getLogger(__name__)

PARAGRAPH_BREAK = "\n\n"
SENTENCE_ENDS = (". ", ".\n", "? ", "! ")

PARAGRAPH_MIN_CHARS = 80
LARGE_CHARS = 400
STALE_MIN_CHARS = 40
MIN_CUT_RATIO = 0.3


class FlushTrigger(StrEnum):
    """Why a flush fired."""

    PARAGRAPH = "paragraph"
    LARGE = "large"
    STALE = "stale"
    FINAL = "final"


@dataclass(frozen=True)
class Flush:
    """A planned flush: ``text`` is delivered, ``length`` chars are consumed."""

    text: str
    length: int
    trigger: FlushTrigger


def detect_trigger(unsent: str, seconds_since_flush: float, stale_seconds: float) -> FlushTrigger | None:
    """Return the trigger that fires for ``unsent``, or None."""
    if PARAGRAPH_BREAK in unsent and len(unsent) > PARAGRAPH_MIN_CHARS:
        return FlushTrigger.PARAGRAPH
    if len(unsent) > LARGE_CHARS:
        return FlushTrigger.LARGE
    if seconds_since_flush > stale_seconds and len(unsent) > STALE_MIN_CHARS:
        return FlushTrigger.STALE
    return None


def select_cut(unsent: str, trigger: FlushTrigger) -> int:
    """Pick the cut length for ``unsent``.

    Priority: last paragraph break (paragraph trigger only), last sentence
    end past 30% of the text, last space past 30%, else the whole text.
    """
    if trigger == FlushTrigger.PARAGRAPH:
        para_idx = unsent.rfind(PARAGRAPH_BREAK)
        if para_idx > 0:
            return para_idx

    threshold = len(unsent) * MIN_CUT_RATIO
    sentence_end = max(unsent.rfind(mark) for mark in SENTENCE_ENDS)
    if sentence_end > threshold:
        return sentence_end + 1

    last_space = unsent.rfind(" ")
    if last_space > threshold:
        return last_space

    return len(unsent)


class FlushScheduler:
    """Plans word-safe flushes for the current turn.

    One scheduler lives for one pipeline run; the staleness clock is shared
    across turns of that run.
    """

    def __init__(
        self,
        *,
        stale_seconds: float = 3.0,
        time_func: Callable[[], float] | None = None,
    ):
        """Initialize the scheduler.

        Args:
            stale_seconds: Idle time after which a modest tail is flushed.
            time_func: Callable returning current time in seconds (default:
                time.monotonic). Inject a mock clock for deterministic tests.
        """
        self.stale_seconds = stale_seconds
        self._time_func = time_func or time.monotonic
        self.last_flush = self._time_func()

    def plan(self, turn: Turn) -> Flush | None:
        unsent = turn.unsent
        trigger = detect_trigger(unsent, self._time_func() - self.last_flush, self.stale_seconds)
        if trigger is None:
            return None
        length = select_cut(unsent, trigger)
        return Flush(text=unsent[:length].strip(), length=length, trigger=trigger)

    def take(self, turn: Turn) -> str | None:
        """Flush the turn if a trigger fires; return the chunk to deliver."""
        flush = self.plan(turn)
        if flush is None:
            return None
        return self._commit(turn, flush)

    def force(self, turn: Turn) -> str | None:
        """Flush everything unsent regardless of triggers (end of turn)."""
        unsent = turn.unsent
        if not unsent:
            return None
        return self._commit(
            turn, Flush(text=unsent.strip(), length=len(unsent), trigger=FlushTrigger.FINAL)
        )

    def _commit(self, turn: Turn, flush: Flush) -> str | None:
        turn.advance(flush.length)
        if not flush.text:
            return None
        self.last_flush = self._time_func()
        logger.debug(
            "Flush (%s): %d chars, offset now %d/%d",
            flush.trigger,
            len(flush.text),
            turn.sent_offset,
            len(turn.full_text),
        )
        return flush.text
