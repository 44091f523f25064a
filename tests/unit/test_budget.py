"""Unit tests for ContextBudgetTracker."""

import pytest

from relay.session.budget import (
    CONTEXT_WINDOW,
    SYSTEM_PROMPT_ESTIMATE,
    ContextBudgetTracker,
    chars_to_tokens,
)


def _tracker_at(pct: float) -> ContextBudgetTracker:
    tracker = ContextBudgetTracker()
    tracker.set_tokens(int(CONTEXT_WINDOW * pct / 100))
    return tracker


class TestEstimates:
    """Token accounting."""

    def test_starts_at_baseline(self):
        tracker = ContextBudgetTracker()
        assert tracker.tokens_used == SYSTEM_PROMPT_ESTIMATE
        assert tracker.used_pct() == 9

    def test_chars_to_tokens_rounds_up(self):
        assert chars_to_tokens(7) == 2
        assert chars_to_tokens(8) == 3
        assert chars_to_tokens(0) == 0

    def test_add_text(self):
        tracker = ContextBudgetTracker(baseline=0)
        tracker.add_text("x" * 35)
        assert tracker.tokens_used == 10

    def test_add_tool_call(self):
        tracker = ContextBudgetTracker(baseline=0)
        tracker.add_tool_call()
        tracker.add_tool_call()
        assert tracker.tokens_used == 1000

    def test_add_tokens_rejects_negative(self):
        with pytest.raises(ValueError):
            ContextBudgetTracker().add_tokens(-1)

    def test_monotonic_under_additions(self):
        tracker = ContextBudgetTracker()
        seen = [tracker.tokens_used]
        for text in ("hello", "", "a longer response " * 10):
            tracker.add_text(text)
            tracker.add_tool_call()
            seen.append(tracker.tokens_used)
        assert seen == sorted(seen)

    def test_set_tokens_overrides(self):
        tracker = ContextBudgetTracker()
        tracker.set_tokens(50_000)
        assert tracker.tokens_used == 50_000
        assert tracker.used_pct() == 25
        assert tracker.remaining_pct() == 75

    def test_used_pct_capped(self):
        tracker = ContextBudgetTracker()
        tracker.set_tokens(CONTEXT_WINDOW * 2)
        assert tracker.used_pct() == 100
        assert tracker.remaining_pct() == 0

    def test_reset(self):
        tracker = _tracker_at(96)
        tracker.check_warnings()
        tracker.reset()
        assert tracker.tokens_used == SYSTEM_PROMPT_ESTIMATE
        assert not tracker.warnings.ten_pct
        assert not tracker.warnings.five_pct

    def test_progress_bar(self):
        tracker = ContextBudgetTracker()
        assert tracker.progress_bar(0) == "[░░░░░░░░░░]"
        assert tracker.progress_bar(50) == "[█████░░░░░]"
        assert tracker.progress_bar(100) == "[██████████]"


class TestWarnings:
    """One-shot threshold warnings."""

    def test_no_warning_below_threshold(self):
        assert _tracker_at(50).check_warnings() is None

    def test_two_warnings_total(self):
        """Crossing 10% then 5% remaining fires exactly two warnings."""
        tracker = _tracker_at(50)
        fired = [tracker.check_warnings()]

        tracker.set_tokens(int(CONTEXT_WINDOW * 0.91))
        fired += [tracker.check_warnings() for _ in range(3)]

        tracker.set_tokens(int(CONTEXT_WINDOW * 0.96))
        fired += [tracker.check_warnings() for _ in range(3)]

        warnings = [w for w in fired if w]
        assert len(warnings) == 2
        assert "Compaction approaching" in warnings[0]
        assert "Compaction imminent" in warnings[1]

    def test_single_jump_fires_only_critical(self):
        tracker = _tracker_at(97)
        warning = tracker.check_warnings()
        assert warning is not None
        assert "Compaction imminent" in warning
        assert tracker.check_warnings() is None
        assert tracker.warnings.ten_pct and tracker.warnings.five_pct

    def test_warnings_rearm_after_reset(self):
        tracker = _tracker_at(92)
        assert tracker.check_warnings() is not None
        tracker.reset()
        tracker.set_tokens(int(CONTEXT_WINDOW * 0.92))
        assert tracker.check_warnings() is not None

    def test_custom_thresholds(self):
        tracker = ContextBudgetTracker(warn_remaining_pct=30, critical_remaining_pct=20)
        tracker.set_tokens(int(CONTEXT_WINDOW * 0.75))
        assert "approaching" in tracker.check_warnings()
