"""Unit tests for flush triggers, cut selection and FlushScheduler."""

from relay.streaming.flush import (
    FlushScheduler,
    FlushTrigger,
    detect_trigger,
    select_cut,
)
from relay.streaming.segmenter import Turn
from tests.mocks import FakeClock

LOREM = (
    "Streaming output should arrive in readable pieces. Each piece ends on a "
    "word boundary so nobody ever sees half a word on their screen. The relay "
    "watches for paragraph breaks, sentence ends and spaces, in that order, "
    "and only falls back to a hard cut when nothing else is available. "
)


class TestDetectTrigger:
    """Tests for detect_trigger()."""

    def test_paragraph_needs_more_than_80_chars(self):
        assert detect_trigger("short\n\nbreak", 0.0, 3.0) is None
        assert detect_trigger("x" * 79 + "\n\nmore", 0.0, 3.0) == FlushTrigger.PARAGRAPH

    def test_large(self):
        assert detect_trigger("y" * 401, 0.0, 3.0) == FlushTrigger.LARGE
        assert detect_trigger("y" * 400, 0.0, 3.0) is None

    def test_stale(self):
        assert detect_trigger("z" * 41, 3.5, 3.0) == FlushTrigger.STALE
        assert detect_trigger("z" * 40, 3.5, 3.0) is None
        assert detect_trigger("z" * 41, 2.0, 3.0) is None


class TestSelectCut:
    """Tests for select_cut()."""

    def test_paragraph_cut_at_break(self):
        """A 500-char tail with a break at 120 is cut at 120, not later."""
        head = "x" * 120
        tail = ("lorem ipsum " * 40)[: 500 - 122]
        unsent = head + "\n\n" + tail
        assert len(unsent) == 500

        assert detect_trigger(unsent, 0.0, 3.0) == FlushTrigger.PARAGRAPH
        assert select_cut(unsent, FlushTrigger.PARAGRAPH) == 120

    def test_paragraph_uses_last_break(self):
        unsent = "a" * 50 + "\n\n" + "b" * 50 + "\n\n" + "c" * 10
        assert select_cut(unsent, FlushTrigger.PARAGRAPH) == 102

    def test_sentence_end_after_threshold(self):
        unsent = "First sentence is here. Second sentence runs on and on without end"
        cut = select_cut(unsent, FlushTrigger.LARGE)
        assert unsent[:cut] == "First sentence is here."

    def test_sentence_end_before_threshold_falls_back_to_space(self):
        unsent = "Hi. " + "word " * 20 + "partial"
        cut = select_cut(unsent, FlushTrigger.LARGE)
        assert unsent[:cut].endswith("word")
        assert unsent[cut] == " "

    def test_space_cut(self):
        unsent = "word " * 20 + "partial"
        cut = select_cut(unsent, FlushTrigger.STALE)
        assert cut == 99
        assert unsent[cut:] == " partial"

    def test_no_boundary_takes_everything(self):
        assert select_cut("x" * 50, FlushTrigger.STALE) == 50

    def test_cut_is_word_safe(self):
        """The character at the cut is whitespace or the end of the text."""
        for end in range(60, len(LOREM)):
            unsent = LOREM[:end]
            for trigger in (FlushTrigger.LARGE, FlushTrigger.STALE):
                cut = select_cut(unsent, trigger)
                assert 0 < cut <= len(unsent)
                if cut < len(unsent):
                    assert unsent[cut].isspace() or unsent[cut - 1] in ".?!"


class TestFlushScheduler:
    """Tests for FlushScheduler."""

    def test_no_flush_for_short_fresh_text(self, clock: FakeClock):
        scheduler = FlushScheduler(time_func=clock)
        assert scheduler.take(Turn(full_text="Hello")) is None

    def test_stale_flush(self, clock: FakeClock):
        scheduler = FlushScheduler(stale_seconds=3.0, time_func=clock)
        turn = Turn(full_text="The model is thinking about this question carefully")
        assert scheduler.take(turn) is None

        clock.advance(3.5)
        chunk = scheduler.take(turn)

        assert chunk == "The model is thinking about this question"
        assert turn.unsent == " carefully"
        assert scheduler.last_flush == clock.now

    def test_large_flush_advances_offset(self, clock: FakeClock):
        scheduler = FlushScheduler(time_func=clock)
        turn = Turn(full_text=LOREM * 2)
        chunk = scheduler.take(turn)
        assert chunk is not None
        assert turn.sent_offset > 0
        assert (LOREM * 2).startswith(chunk)

    def test_force_flushes_remaining(self, clock: FakeClock):
        scheduler = FlushScheduler(time_func=clock)
        turn = Turn(full_text="Hello world")
        turn.advance(5)
        assert scheduler.force(turn) == "world"
        assert turn.sent_offset == len(turn.full_text)
        assert scheduler.force(turn) is None

    def test_whitespace_only_slice_advances_without_emitting(self, clock: FakeClock):
        scheduler = FlushScheduler(time_func=clock)
        turn = Turn(full_text="Done.   ")
        turn.advance(5)
        clock.advance(10)

        assert scheduler.force(turn) is None
        assert turn.sent_offset == len(turn.full_text)
        assert scheduler.last_flush == 1000.0

    def test_growing_turn_delivers_every_word_once(self, clock: FakeClock):
        """Chunks taken while a turn grows reassemble into its full text."""
        scheduler = FlushScheduler(time_func=clock)
        full = (LOREM + "\n\n") * 3
        turn = Turn()
        chunks = []
        for end in range(0, len(full) + 1, 17):
            turn.update(full[:end])
            clock.advance(0.5)
            chunk = scheduler.take(turn)
            if chunk:
                chunks.append(chunk)
        turn.update(full)
        final = scheduler.force(turn)
        if final:
            chunks.append(final)

        assert " ".join(chunks).split() == full.split()
        assert turn.sent_offset == len(full)
