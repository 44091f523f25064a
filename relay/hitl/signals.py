"""Feedback signal detection.

Heuristic, regex-driven detection of interaction-quality signals in user
messages (praise, corrections, frustration, memory gaps) plus explicit
signals from approval outcomes. Rules are data: each ``SignalRule`` pairs a
pattern with the signal it produces, and at most one rule per group fires
for a message.
"""

from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

MIN_MESSAGE_CHARS = 5
ENGAGEMENT_MIN_CHARS = 200
_MAX_RECORDED = 200


@dataclass(frozen=True)
class Signal:
    """One interaction-quality observation."""

    type: str
    source: str
    value: float
    notes: str


@dataclass(frozen=True)
class SignalRule:
    pattern: re.Pattern[str]
    note: str


@dataclass(frozen=True)
class SignalGroup:
    """Rules producing the same signal type; first match wins."""

    type: str
    value: float
    rules: tuple[SignalRule, ...]


def _rules(*pairs: tuple[str, str]) -> tuple[SignalRule, ...]:
    return tuple(SignalRule(re.compile(p, re.I), note) for p, note in pairs)


SIGNAL_GROUPS: tuple[SignalGroup, ...] = (
    SignalGroup(
        type="positive",
        value=0.5,
        rules=_rules(
            (r"\b(thanks|thank you|thx|ty|appreciate|great job|perfect|love it|nice|awesome|exactly)\b", "gratitude/praise"),
            (r"\b(yes|yeah|yep|correct|right|that's it|bingo|spot on)\b", "confirmation"),
            (r"\b(let's do|go ahead|sounds good|do it|ship it|approved|let's go)\b", "approval/momentum"),
            (r"\b(this is (great|perfect|exactly|helpful))\b", "explicit praise"),
        ),
    ),
    SignalGroup(
        type="negative",
        value=-0.5,
        rules=_rules(
            (r"\b(no|nope|wrong|that's not|incorrect|not what i|you got it wrong)\b", "correction/rejection"),
            (r"\b(i (already|just) (said|told|asked|mentioned))\b", "repetition frustration"),
            (r"\b(stop|don't|quit|enough|never mind|forget it|nvm)\b", "frustration/abort"),
            (r"\b(is this true|are you sure|that doesn't sound right|i thought)\b", "doubt/verification"),
        ),
    ),
    SignalGroup(
        type="context_miss",
        value=-0.7,
        rules=_rules(
            (r"\b(i told you|we discussed|remember when|you should know|i already)\b", "memory gap"),
            (r"\b(check (my|the) (files?|notes?|memory|goals?))\b", "explicit context request"),
            (r"\b(you forgot|did you forget|don't you remember)\b", "forgotten context"),
        ),
    ),
)

_CORRECTION_OPENER = re.compile(r"^(no[,.]?\s|actually[,.]?\s|wait[,.]?\s)", re.I)


def detect_signals(user_message: str) -> list[Signal]:
    """Detect feedback signals in a user message."""
    msg = user_message.strip()
    if len(msg) < MIN_MESSAGE_CHARS:
        return []

    signals: list[Signal] = []
    for group in SIGNAL_GROUPS:
        for rule in group.rules:
            if rule.pattern.search(msg):
                signals.append(Signal(group.type, "text_heuristic", group.value, rule.note))
                break

    if len(msg) > ENGAGEMENT_MIN_CHARS:
        signals.append(Signal("engagement", "text_heuristic", 0.3, f"long message ({len(msg)} chars)"))

    if _CORRECTION_OPENER.search(msg):
        signals.append(Signal("correction", "text_heuristic", -0.6, "correction opener"))

    return signals


def action_approved_signal() -> Signal:
    return Signal("action_approved", "approval_gate", 0.8, "user approved proposed action")


def action_rejected_signal() -> Signal:
    return Signal("action_rejected", "approval_gate", -0.8, "user rejected proposed action")


@dataclass
class SignalRecorder:
    """Keeps recent signals with the session context they were seen in."""

    entries: deque[dict[str, Any]] = field(default_factory=lambda: deque(maxlen=_MAX_RECORDED))

    def record(self, signals: list[Signal], *, session_id: str | None = None, model: str | None = None) -> None:
        timestamp = datetime.now(UTC).isoformat()
        for signal in signals:
            self.entries.append(
                {**asdict(signal), "session_id": session_id, "model": model, "timestamp": timestamp}
            )
        if signals:
            logger.debug("Recorded %d feedback signal(s)", len(signals))

    def recent(self, limit: int = 20) -> list[dict[str, Any]]:
        return list(self.entries)[-limit:]
