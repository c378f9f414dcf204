"""Running score counters and the final graded report."""

from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.config import DEFAULT_FLOOR_GRADE, DEFAULT_GRADE_THRESHOLDS
from ..logger import get_logger
from ..note_types import ScoreReport, ScoreSnapshot

logger = get_logger(__name__)

STAR_THRESHOLDS: Tuple[Tuple[float, int], ...] = (
    (95.0, 5),
    (85.0, 4),
    (75.0, 3),
    (65.0, 2),
)


class ScoreEngine:
    """Accumulates hits, wrong notes and misses for one practice run."""

    def __init__(
        self,
        total_notes: int = 0,
        penalty_threshold_ms: float = 50.0,
        penalty_per_ms: float = 0.1,
        grade_thresholds: Sequence[Tuple[float, str]] = DEFAULT_GRADE_THRESHOLDS,
        floor_grade: str = DEFAULT_FLOOR_GRADE,
    ):
        scores = [score for score, _ in grade_thresholds]
        if any(later >= earlier for earlier, later in zip(scores, scores[1:])):
            raise ValueError("Grade thresholds must be strictly decreasing")

        self.total_notes = total_notes
        self.penalty_threshold_ms = penalty_threshold_ms
        self.penalty_per_ms = penalty_per_ms
        self.grade_thresholds = tuple(grade_thresholds)
        self.floor_grade = floor_grade
        self.reset()

    def reset(self) -> None:
        self.correct = 0
        self.incorrect = 0
        self.missed = 0
        self.current_streak = 0
        self.max_streak = 0
        self._timing_errors: List[float] = []
        self._measure_attempts: Dict[int, int] = defaultdict(int)
        self._measure_errors: Dict[int, int] = defaultdict(int)

    def record_hit(self, timing_error_ms: float, measure_index: int = 0) -> None:
        self.correct += 1
        self.current_streak += 1
        self.max_streak = max(self.max_streak, self.current_streak)
        self._timing_errors.append(abs(timing_error_ms))
        self._measure_attempts[measure_index] += 1

    def record_incorrect(self, measure_index: int = 0) -> None:
        self.incorrect += 1
        self.current_streak = 0
        self._measure_attempts[measure_index] += 1
        self._measure_errors[measure_index] += 1

    def record_missed(self, measure_index: int = 0) -> None:
        # Missed notes break the streak but stay out of the accuracy ratio
        self.missed += 1
        self.current_streak = 0
        self._measure_attempts[measure_index] += 1
        self._measure_errors[measure_index] += 1

    @property
    def accuracy_percent(self) -> float:
        attempts = self.correct + self.incorrect
        if attempts == 0:
            return 0.0
        return self.correct * 100.0 / attempts

    @property
    def average_timing_error_ms(self) -> float:
        if not self._timing_errors:
            return 0.0
        return sum(self._timing_errors) / len(self._timing_errors)

    @property
    def timing_penalty(self) -> float:
        average = self.average_timing_error_ms
        if average <= self.penalty_threshold_ms:
            return 0.0
        return (average - self.penalty_threshold_ms) * self.penalty_per_ms

    @property
    def final_score(self) -> float:
        return max(0.0, self.accuracy_percent - self.timing_penalty)

    def grade(self, accuracy: Optional[float] = None) -> str:
        accuracy = self.accuracy_percent if accuracy is None else accuracy
        for threshold, letter in self.grade_thresholds:
            if accuracy >= threshold:
                return letter
        return self.floor_grade

    def star_rating(self, accuracy: Optional[float] = None) -> int:
        accuracy = self.accuracy_percent if accuracy is None else accuracy
        for threshold, stars in STAR_THRESHOLDS:
            if accuracy >= threshold:
                return stars
        return 1

    def problem_measures(self) -> Tuple[int, ...]:
        """Measures where more than half of the notes went wrong or were missed."""
        return tuple(
            sorted(
                measure
                for measure, attempts in self._measure_attempts.items()
                if self._measure_errors[measure] * 2 > attempts
            )
        )

    def snapshot(
        self,
        position_ms: float = 0.0,
        total_duration_ms: float = 0.0,
        recent_feedback: Sequence[str] = (),
    ) -> ScoreSnapshot:
        return ScoreSnapshot(
            accuracy_percent=self.accuracy_percent,
            correct=self.correct,
            incorrect=self.incorrect,
            missed=self.missed,
            current_streak=self.current_streak,
            max_streak=self.max_streak,
            total_notes=self.total_notes,
            position_ms=position_ms,
            total_duration_ms=total_duration_ms,
            recent_feedback=tuple(recent_feedback),
        )

    def report(self, duration_ms: float = 0.0, speed_factor: float = 1.0) -> ScoreReport:
        accuracy = self.accuracy_percent
        report = ScoreReport(
            total_notes=self.total_notes,
            correct=self.correct,
            incorrect=self.incorrect,
            missed=self.missed,
            accuracy_percent=accuracy,
            average_timing_error_ms=self.average_timing_error_ms,
            timing_penalty=self.timing_penalty,
            final_score=self.final_score,
            grade=self.grade(accuracy),
            star_rating=self.star_rating(accuracy),
            max_streak=self.max_streak,
            duration_ms=duration_ms,
            speed_factor=speed_factor,
            problem_measures=self.problem_measures(),
        )
        logger.info(
            f"Score: {accuracy:.1f}% grade {report.grade}, "
            f"{self.correct}/{self.total_notes} correct"
        )
        return report
