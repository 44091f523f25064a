"""Context budget tracking.

Keeps a running estimate of how much of the backend's context window the
conversation has consumed and raises one-shot warnings as it fills up.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

logger = logging.getLogger(__name__)

CONTEXT_WINDOW = 200_000
SYSTEM_PROMPT_ESTIMATE = 18_000
TOOL_OVERHEAD_PER_CALL = 500
CHARS_PER_TOKEN = 3.5

_BAR_CELLS = 10


def chars_to_tokens(chars: int, chars_per_token: float = CHARS_PER_TOKEN) -> int:
    """Estimate tokens for ``chars`` characters, rounding up."""
    return math.ceil(chars / chars_per_token)


@dataclass
class WarningFlags:
    ten_pct: bool = False
    five_pct: bool = False


class ContextBudgetTracker:
    """Running token estimate for one session.

    ``tokens_used`` starts at the system-prompt baseline and only grows,
    except through ``reset()`` or an authoritative ``set_tokens()`` value
    reported by the backend.
    """

    def __init__(
        self,
        *,
        window: int = CONTEXT_WINDOW,
        baseline: int = SYSTEM_PROMPT_ESTIMATE,
        tool_overhead: int = TOOL_OVERHEAD_PER_CALL,
        chars_per_token: float = CHARS_PER_TOKEN,
        warn_remaining_pct: int = 10,
        critical_remaining_pct: int = 5,
    ):
        self.window = window
        self.baseline = baseline
        self.tool_overhead = tool_overhead
        self.chars_per_token = chars_per_token
        self.warn_remaining_pct = warn_remaining_pct
        self.critical_remaining_pct = critical_remaining_pct
        self.tokens_used = baseline
        self.warnings = WarningFlags()

    def add_tokens(self, n: int) -> None:
        if n < 0:
            raise ValueError("token increments must be non-negative")
        self.tokens_used += n

    def add_text(self, text: str) -> None:
        """Account for a prompt or response by character count."""
        self.add_tokens(chars_to_tokens(len(text), self.chars_per_token))

    def add_tool_call(self) -> None:
        self.add_tokens(self.tool_overhead)

    def set_tokens(self, n: int) -> None:
        """Override the estimate with usage reported by the backend."""
        self.tokens_used = max(0, n)

    def used_pct(self) -> int:
        return min(100, round(self.tokens_used / self.window * 100))

    def remaining_pct(self) -> int:
        return 100 - self.used_pct()

    def reset(self) -> None:
        self.tokens_used = self.baseline
        self.warnings = WarningFlags()

    def progress_bar(self, pct: int | None = None) -> str:
        p = self.used_pct() if pct is None else pct
        filled = round(p / 100 * _BAR_CELLS)
        return "[" + "█" * filled + "░" * (_BAR_CELLS - filled) + "]"

    def check_warnings(self) -> str | None:
        """Return a warning the first time each threshold is crossed.

        Each threshold fires at most once until ``reset()``. When a single
        jump crosses both, only the critical warning fires; it subsumes the
        earlier one.
        """
        remaining = self.remaining_pct()
        used = self.used_pct()

        if remaining <= self.critical_remaining_pct and not self.warnings.five_pct:
            self.warnings.five_pct = True
            self.warnings.ten_pct = True
            logger.info("Context critical: ~%d%% used", used)
            return (
                f"Context ~{used}% full (~{remaining}% left). Compaction imminent.\n"
                "Session files are saved, nothing will be lost."
            )
        if remaining <= self.warn_remaining_pct and not self.warnings.ten_pct:
            self.warnings.ten_pct = True
            logger.info("Context warning: ~%d%% used", used)
            return (
                f"Context ~{used}% full (~{remaining}% left). Compaction approaching.\n"
                "The agent will auto-recover from session files after compaction."
            )
        return None
