import unittest

from fret_coach.core.config import PracticeConfig
from fret_coach.core.events import PracticeEvents
from fret_coach.note_matcher import MatchMode
from fret_coach.note_types import DetectedNoteEvent, ExpectedNote, NoteIdentity
from fret_coach.scoring.practice_session import PracticeSession
from fret_coach.scoring.score_engine import ScoreEngine
from fret_coach.scoring.timeline_matcher import MatchOutcome, TimelineMatcher

A2 = 45
B2 = 47


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def played(midi, timestamp_ms):
    return DetectedNoteEvent(NoteIdentity.from_midi(midi), timestamp_ms)


def even_timeline(count, spacing_ms=500, midi=A2, start_ms=0):
    return [
        ExpectedNote.of(start_ms + i * spacing_ms, 250, midi, measure_index=i // 4)
        for i in range(count)
    ]


class TestExpectedNote(unittest.TestCase):
    def test_negative_times_clamp_to_zero(self):
        note = ExpectedNote.of(-120, -5, A2)
        self.assertEqual(note.time_ms, 0.0)
        self.assertEqual(note.duration_ms, 0.0)
        self.assertEqual(note.note_name, "A2")
        self.assertAlmostEqual(note.frequency_hz, 110.0)

    def test_is_active_at(self):
        note = ExpectedNote.of(1000, 250, A2)
        self.assertTrue(note.is_active_at(950, 100))
        self.assertTrue(note.is_active_at(1300, 100))
        self.assertFalse(note.is_active_at(1400, 100))
        self.assertFalse(note.is_active_at(850, 100))


class TestTimelineMatcher(unittest.TestCase):
    def test_hit_within_window(self):
        matcher = TimelineMatcher(even_timeline(3))
        result = matcher.match(played(A2, 60))
        self.assertEqual(result.outcome, MatchOutcome.HIT)
        self.assertAlmostEqual(result.timing_error_ms, 60.0)
        self.assertEqual(matcher.cursor, 1)

    def test_late_hit_reports_earlier_misses(self):
        matcher = TimelineMatcher(even_timeline(3))
        result = matcher.match(played(A2, 540))
        self.assertEqual(result.outcome, MatchOutcome.HIT)
        self.assertAlmostEqual(result.timing_error_ms, 40.0)
        self.assertEqual([n.time_ms for n in result.missed], [0])

    def test_wrong_note_consumes_slot(self):
        matcher = TimelineMatcher(even_timeline(2))
        result = matcher.match(played(B2, 0))
        self.assertEqual(result.outcome, MatchOutcome.WRONG)
        self.assertEqual(matcher.cursor, 1)
        # Retrying the right note late cannot reuse the slot
        self.assertEqual(matcher.match(played(A2, 20)).outcome, MatchOutcome.UNMATCHED)

    def test_early_note_is_unmatched(self):
        matcher = TimelineMatcher(even_timeline(2, start_ms=1000))
        result = matcher.match(played(A2, 700))
        self.assertEqual(result.outcome, MatchOutcome.UNMATCHED)
        self.assertEqual(matcher.cursor, 0)

    def test_cursor_never_rewinds(self):
        matcher = TimelineMatcher(even_timeline(4))
        self.assertEqual(matcher.match(played(A2, 1000)).outcome, MatchOutcome.HIT)
        cursor = matcher.cursor
        # Out of order: events for notes already passed
        for timestamp in (0, 500, 10, 990):
            result = matcher.match(played(A2, timestamp))
            self.assertEqual(result.outcome, MatchOutcome.UNMATCHED)
        self.assertEqual(matcher.cursor, cursor)

    def test_each_note_matched_at_most_once(self):
        matcher = TimelineMatcher(even_timeline(1))
        outcomes = [matcher.match(played(A2, t)).outcome for t in (0, 10, 20)]
        self.assertEqual(outcomes.count(MatchOutcome.HIT), 1)

    def test_expire(self):
        matcher = TimelineMatcher(even_timeline(3))
        self.assertEqual(matcher.expire(100), [])
        missed = matcher.expire(650)
        self.assertEqual([n.time_ms for n in missed], [0, 500])
        self.assertEqual(matcher.remaining, 1)

    def test_speed_factor_scales_expected_times(self):
        matcher = TimelineMatcher(even_timeline(2, spacing_ms=1000), speed_factor=0.5)
        self.assertEqual(matcher.match(played(A2, 0)).outcome, MatchOutcome.HIT)
        # Second note at 1000ms plays at 2000ms when slowed to half speed
        self.assertEqual(matcher.match(played(A2, 1000)).outcome, MatchOutcome.UNMATCHED)
        result = matcher.match(played(A2, 2050))
        self.assertEqual(result.outcome, MatchOutcome.HIT)
        self.assertAlmostEqual(result.timing_error_ms, 50.0)

    def test_speed_factor_out_of_range_is_clamped(self):
        with self.assertLogs("fret_coach.scoring.timeline_matcher", level="WARNING"):
            self.assertEqual(TimelineMatcher(even_timeline(1), speed_factor=0).speed_factor, 0.25)
        with self.assertLogs("fret_coach.scoring.timeline_matcher", level="WARNING"):
            self.assertEqual(TimelineMatcher(even_timeline(1), speed_factor=5.0).speed_factor, 2.0)

    def test_pitch_mode(self):
        timeline = [ExpectedNote.of(0, 250, A2)]
        matcher = TimelineMatcher(timeline, mode=MatchMode.PITCH)
        self.assertEqual(matcher.match(played(A2 + 12, 0)).outcome, MatchOutcome.WRONG)
        matcher = TimelineMatcher(timeline, mode=MatchMode.PITCH_CLASS)
        self.assertEqual(matcher.match(played(A2 + 12, 0)).outcome, MatchOutcome.HIT)

    def test_unsorted_timeline_rejected(self):
        with self.assertRaises(ValueError):
            TimelineMatcher([ExpectedNote.of(500, 100, A2), ExpectedNote.of(0, 100, A2)])

    def test_empty_timeline(self):
        matcher = TimelineMatcher([])
        self.assertTrue(matcher.is_finished())
        self.assertEqual(matcher.match(played(A2, 0)).outcome, MatchOutcome.UNMATCHED)


class TestScoreEngine(unittest.TestCase):
    def test_empty_is_zero(self):
        engine = ScoreEngine()
        self.assertEqual(engine.accuracy_percent, 0.0)
        self.assertEqual(engine.average_timing_error_ms, 0.0)
        self.assertEqual(engine.timing_penalty, 0.0)
        self.assertEqual(engine.final_score, 0.0)
        self.assertEqual(engine.grade(), "D")
        self.assertEqual(engine.star_rating(), 1)

    def test_accuracy_ignores_missed(self):
        engine = ScoreEngine(total_notes=5)
        for _ in range(3):
            engine.record_hit(0)
        engine.record_incorrect()
        engine.record_missed()
        self.assertAlmostEqual(engine.accuracy_percent, 75.0)

    def test_accuracy_monotonic(self):
        previous = -1.0
        for correct in range(0, 10):
            engine = ScoreEngine()
            for _ in range(correct):
                engine.record_hit(0)
            engine.record_incorrect()
            engine.record_incorrect()
            self.assertGreater(engine.accuracy_percent, previous)
            previous = engine.accuracy_percent

        previous = 101.0
        for incorrect in range(0, 10):
            engine = ScoreEngine()
            engine.record_hit(0)
            for _ in range(incorrect):
                engine.record_incorrect()
            self.assertLess(engine.accuracy_percent, previous)
            previous = engine.accuracy_percent

    def test_streaks(self):
        engine = ScoreEngine()
        for _ in range(3):
            engine.record_hit(0)
        engine.record_missed()
        engine.record_hit(0)
        self.assertEqual(engine.current_streak, 1)
        self.assertEqual(engine.max_streak, 3)
        engine.record_incorrect()
        self.assertEqual(engine.current_streak, 0)

    def test_timing_penalty(self):
        engine = ScoreEngine()
        engine.record_hit(-40)
        engine.record_hit(40)
        self.assertAlmostEqual(engine.average_timing_error_ms, 40.0)
        self.assertEqual(engine.timing_penalty, 0.0)

        engine = ScoreEngine()
        engine.record_hit(80)
        engine.record_hit(-100)
        self.assertAlmostEqual(engine.average_timing_error_ms, 90.0)
        self.assertAlmostEqual(engine.timing_penalty, 4.0)
        self.assertAlmostEqual(engine.final_score, 96.0)

    def test_final_score_never_negative(self):
        engine = ScoreEngine()
        engine.record_hit(1000)
        for _ in range(20):
            engine.record_incorrect()
        self.assertEqual(engine.final_score, 0.0)

    def test_grades(self):
        engine = ScoreEngine()
        expectations = [
            (100, "S"),
            (95, "S"),
            (94.9, "A"),
            (90, "A"),
            (85, "B+"),
            (80, "B"),
            (75, "C+"),
            (70, "C"),
            (69.9, "D"),
            (0, "D"),
        ]
        for accuracy, letter in expectations:
            self.assertEqual(engine.grade(accuracy), letter, accuracy)

    def test_custom_grades_must_be_monotonic(self):
        engine = ScoreEngine(grade_thresholds=[(90, "Gold"), (50, "Silver")], floor_grade="None")
        self.assertEqual(engine.grade(60), "Silver")
        self.assertEqual(engine.grade(10), "None")
        with self.assertRaises(ValueError):
            ScoreEngine(grade_thresholds=[(50, "B"), (90, "A")])

    def test_star_rating(self):
        engine = ScoreEngine()
        self.assertEqual(engine.star_rating(96), 5)
        self.assertEqual(engine.star_rating(85), 4)
        self.assertEqual(engine.star_rating(80), 3)
        self.assertEqual(engine.star_rating(65), 2)
        self.assertEqual(engine.star_rating(10), 1)

    def test_problem_measures(self):
        engine = ScoreEngine()
        engine.record_hit(0, measure_index=0)
        engine.record_hit(0, measure_index=0)
        engine.record_missed(measure_index=1)
        engine.record_incorrect(measure_index=1)
        engine.record_hit(0, measure_index=1)
        engine.record_hit(0, measure_index=2)
        engine.record_missed(measure_index=2)
        self.assertEqual(engine.problem_measures(), (1,))

    def test_report(self):
        engine = ScoreEngine(total_notes=4)
        for _ in range(3):
            engine.record_hit(10)
        engine.record_incorrect(measure_index=2)
        report = engine.report(duration_ms=65000)
        self.assertEqual(report.correct, 3)
        self.assertEqual(report.grade, "C+")
        self.assertEqual(report.star_rating, 3)
        self.assertEqual(report.problem_measures, (2,))
        self.assertEqual(report.formatted_duration(), "01:05")
        self.assertIn("Problem measures: 3", report.summary())


class TestPracticeSession(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()

    def make_session(self, timeline, **config):
        return PracticeSession(timeline, config=PracticeConfig(**config), clock=self.clock)

    def test_empty_timeline_stop_immediately(self):
        session = self.make_session([])
        report = session.stop()
        self.assertEqual(report.accuracy_percent, 0.0)
        self.assertEqual(report.correct, 0)
        self.assertEqual(report.incorrect, 0)
        self.assertEqual(report.final_score, 0.0)

    def test_all_notes_on_time(self):
        session = self.make_session(even_timeline(10))
        session.start()
        for i in range(10):
            self.clock.now = i * 500
            session.on_detected_note(played(A2, i * 500))
        self.clock.now = 5000
        report = session.stop()
        self.assertEqual(report.accuracy_percent, 100.0)
        self.assertEqual(report.max_streak, 10)
        self.assertEqual(report.correct, 10)
        self.assertEqual(report.missed, 0)
        self.assertEqual(report.grade, "S")
        self.assertEqual(report.star_rating, 5)

    def test_clock_offset_and_latency_compensation(self):
        self.clock.now = 10000
        session = self.make_session(even_timeline(2), latency_compensation_ms=80)
        session.start()
        result = session.on_detected_note(played(A2, 10080))
        self.assertEqual(result.outcome, MatchOutcome.HIT)
        self.assertAlmostEqual(result.timing_error_ms, 0.0)

    def test_tick_marks_missed(self):
        session = self.make_session(even_timeline(3))
        session.start()
        snapshot = session.tick(750)
        self.assertEqual(snapshot.missed, 2)
        self.assertEqual(snapshot.total_notes, 3)
        self.assertEqual(session.recent_feedback[-1], "Missed A2")

    def test_stop_only_misses_closed_windows(self):
        session = self.make_session(even_timeline(4))
        session.start()
        session.on_detected_note(played(A2, 0))
        self.clock.now = 520  # Second note's window still open
        report = session.stop()
        self.assertEqual(report.correct, 1)
        self.assertEqual(report.missed, 0)
        self.assertEqual(report.total_notes, 4)

    def test_stop_is_idempotent(self):
        session = self.make_session(even_timeline(2))
        session.start()
        first = session.stop()
        self.assertIs(session.stop(), first)
        self.assertFalse(session.is_active)
        self.assertIsNone(session.on_detected_note(played(A2, 0)))

    def test_events_ignored_before_start(self):
        session = self.make_session(even_timeline(2))
        self.assertIsNone(session.on_detected_note(played(A2, 0)))
        self.assertEqual(session.snapshot().correct, 0)

    def test_pause_excludes_paused_time(self):
        session = self.make_session(even_timeline(3))
        session.start()
        self.clock.now = 200
        self.assertTrue(session.pause())
        self.assertIsNone(session.on_detected_note(played(A2, 300)))
        self.clock.now = 1200
        self.assertTrue(session.resume())
        self.assertAlmostEqual(session.position_ms(), 200.0)
        # 1500 on the clock is 500ms into the song
        self.clock.now = 1500
        result = session.on_detected_note(played(A2, 1500))
        self.assertEqual(result.outcome, MatchOutcome.HIT)
        self.assertEqual(len(result.missed), 1)
        self.assertAlmostEqual(result.timing_error_ms, 0.0)

    def test_tick_while_paused_does_not_advance(self):
        session = self.make_session(even_timeline(3))
        session.start()
        self.clock.now = 200
        session.pause()
        snapshot = session.tick(900)
        self.assertAlmostEqual(snapshot.position_ms, 200.0)
        self.assertEqual(snapshot.missed, 0)
        self.clock.now = 1200
        session.resume()
        self.assertAlmostEqual(session.position_ms(1200), 200.0)

    def test_pause_and_resume_need_right_state(self):
        session = self.make_session(even_timeline(1))
        self.assertFalse(session.pause())
        session.start()
        self.assertFalse(session.resume())
        self.assertTrue(session.pause())
        self.assertFalse(session.pause())

    def test_recent_feedback_keeps_last_five(self):
        session = self.make_session(even_timeline(8))
        session.start()
        for i in range(8):
            session.on_detected_note(played(B2, i * 500))
        feedback = session.recent_feedback
        self.assertEqual(len(feedback), 5)
        self.assertTrue(all(line.startswith("Wrong note") for line in feedback))
        self.assertEqual(session.snapshot().incorrect, 8)

    def test_publishes_snapshots(self):
        events = PracticeEvents()
        updates, finished = [], []
        events.on_score_update(updates.append)
        events.on_finished(finished.append)
        session = PracticeSession(
            even_timeline(2), config=PracticeConfig(), clock=self.clock, events=events
        )
        session.start()
        session.on_detected_note(played(A2, 0))
        self.assertEqual(session.cell.get().correct, 1)
        report = session.stop()
        self.assertEqual(finished, [report])
        self.assertGreaterEqual(len(updates), 3)

    def test_total_duration_defaults_to_last_note_end(self):
        session = self.make_session(even_timeline(3))
        self.assertEqual(session.total_duration_ms, 1250)
        half_speed = self.make_session(even_timeline(3), speed_factor=0.5)
        self.assertEqual(half_speed.total_duration_ms, 2500)


if __name__ == "__main__":
    unittest.main()
