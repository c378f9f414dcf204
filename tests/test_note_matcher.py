import unittest

from fret_coach.note_matcher import MatchMode, NoteMatcher
from fret_coach.note_types import DetectedNoteEvent, ExpectedNote, NoteIdentity


class TestNoteMatcher(unittest.TestCase):
    def test_exact_match(self):
        self.assertTrue(NoteMatcher.match("C#1", "C#1"))
        self.assertTrue(NoteMatcher.match("A", "A"))

    def test_octave_insensitive(self):
        self.assertTrue(NoteMatcher.match("C#", "C#1"))
        self.assertTrue(NoteMatcher.match("A", "A0"))
        self.assertTrue(NoteMatcher.match("A2", "A3"))

    def test_octave_sensitive(self):
        self.assertTrue(NoteMatcher.match("A2", "A2", match_octave=True))
        self.assertFalse(NoteMatcher.match("A2", "A3", match_octave=True))
        # A missing octave on either side still matches by pitch class
        self.assertTrue(NoteMatcher.match("A", "A3", match_octave=True))

    def test_enharmonic_equivalence(self):
        self.assertTrue(NoteMatcher.match("Gb", "F#0"))
        self.assertTrue(NoteMatcher.match("Bb", "A#1"))
        self.assertTrue(NoteMatcher.match("Db", "C#2"))
        self.assertTrue(NoteMatcher.match("Eb", "D#3"))
        self.assertTrue(NoteMatcher.match("Cb", "B4"))
        self.assertTrue(NoteMatcher.match("Fb", "E5"))
        self.assertTrue(NoteMatcher.match("Ab", "G#6"))

    def test_enharmonic_octave_wrap(self):
        # Cb4 sounds as B3
        self.assertTrue(NoteMatcher.match("Cb4", "B3", match_octave=True))
        self.assertTrue(NoteMatcher.match("B#3", "C4", match_octave=True))

    def test_negative_cases(self):
        self.assertFalse(NoteMatcher.match("C", "D1"))
        self.assertFalse(NoteMatcher.match("F#", "G0"))
        self.assertFalse(NoteMatcher.match("Bb", "B1"))

    def test_invalid_input(self):
        self.assertFalse(NoteMatcher.match("", "A2"))
        self.assertFalse(NoteMatcher.match("A", None))
        self.assertFalse(NoteMatcher.match("H2", "A2"))


class TestMatchEvent(unittest.TestCase):
    def setUp(self):
        # A2 on the 5th string, open
        self.expected = ExpectedNote.of(1000, 250, 45, string=5, fret=0)

    def event(self, name, octave, string=None, fret=None):
        return DetectedNoteEvent(NoteIdentity(name, octave), 1000, string=string, fret=fret)

    def test_pitch_class_mode_ignores_octave(self):
        self.assertTrue(NoteMatcher.match_event(self.expected, self.event("A", 3)))
        self.assertFalse(NoteMatcher.match_event(self.expected, self.event("B", 2)))

    def test_pitch_mode_requires_octave(self):
        self.assertTrue(
            NoteMatcher.match_event(self.expected, self.event("A", 2), MatchMode.PITCH)
        )
        self.assertFalse(
            NoteMatcher.match_event(self.expected, self.event("A", 3), MatchMode.PITCH)
        )

    def test_string_fret_mode(self):
        mode = MatchMode.STRING_FRET
        self.assertTrue(NoteMatcher.match_event(self.expected, self.event("A", 2, 5, 0), mode))
        # Same pitch on another string is a different position
        self.assertFalse(NoteMatcher.match_event(self.expected, self.event("A", 2, 6, 5), mode))

    def test_string_fret_mode_without_position_uses_pitch(self):
        mode = MatchMode.STRING_FRET
        self.assertTrue(NoteMatcher.match_event(self.expected, self.event("A", 2), mode))
        self.assertFalse(NoteMatcher.match_event(self.expected, self.event("A", 3), mode))


if __name__ == "__main__":
    unittest.main()
