"""Turn segmenter: group text deltas into logical assistant turns.

Each text delta carries the whole utterance accumulated so far. A new turn
begins when the delta's ``turn_key`` differs from the current turn's key.
Backends that supply no key fall back to a length heuristic: within one
turn the text only grows, so a shorter text means a new utterance. The
key always wins when present.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from relay.streaming.events import TextDelta

logger = logging.getLogger(__name__)


@dataclass
class Turn:
    """One continuous assistant utterance.

    Attributes:
        full_text: Latest full text of the utterance.
        sent_offset: Number of leading characters already delivered.
            Always within ``[0, len(full_text)]``.
        started_at: Monotonic timestamp of the first delta.
        key: Backend message identifier, if any.
    """

    full_text: str = ""
    sent_offset: int = 0
    started_at: float = field(default_factory=time.monotonic)
    key: str | None = None

    @property
    def unsent(self) -> str:
        return self.full_text[self.sent_offset :]

    def advance(self, n: int) -> None:
        """Mark ``n`` more characters as delivered."""
        if n < 0:
            raise ValueError("sent offset cannot move backwards")
        self.sent_offset = min(len(self.full_text), self.sent_offset + n)

    def update(self, text: str) -> None:
        self.full_text = text
        # A shrinking correction inside the same keyed turn must not leave
        # the offset past the end.
        if self.sent_offset > len(text):
            self.sent_offset = len(text)


class TurnSegmenter:
    """Maintains the current turn and the archive of finished turns."""

    def __init__(self) -> None:
        self.current: Turn | None = None
        self.archived: list[str] = []

    def is_boundary(self, delta: TextDelta) -> bool:
        current = self.current
        if current is None or not current.full_text:
            return False
        if delta.turn_key and current.key:
            return delta.turn_key != current.key
        return len(delta.text) < len(current.full_text)

    def feed(self, delta: TextDelta) -> tuple[Turn, Turn | None]:
        """Apply a text delta.

        Returns:
            ``(current_turn, finished_turn)`` where ``finished_turn`` is the
            turn that was just closed by a boundary, or None.
        """
        finished: Turn | None = None
        if self.current is None:
            self.current = Turn(key=delta.turn_key)
        elif self.is_boundary(delta):
            finished = self.current
            self.archived.append(finished.full_text)
            logger.debug(
                "Turn boundary (%s): archived %d chars",
                "key" if delta.turn_key and finished.key else "length",
                len(finished.full_text),
            )
            self.current = Turn(key=delta.turn_key)
        elif delta.turn_key and not self.current.key:
            self.current.key = delta.turn_key

        self.current.update(delta.text)
        return self.current, finished

    def finish(self) -> list[str]:
        """Archive the current turn (if any) and return all turn texts."""
        if self.current is not None and self.current.full_text:
            self.archived.append(self.current.full_text)
        self.current = None
        return list(self.archived)

    @property
    def current_text(self) -> str:
        return self.current.full_text if self.current else ""
