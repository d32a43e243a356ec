"""Quiz result summary, letter grades and result-screen text."""
from dataclasses import dataclass
from datetime import datetime

from quizzone.models import Quiz


def get_grade(percentage: float) -> str:
    if percentage >= 90:
        return "A+"
    elif percentage >= 80:
        return "A"
    elif percentage >= 70:
        return "B"
    elif percentage >= 60:
        return "C"
    return "D"


def get_grade_color(grade: str) -> str:
    if grade in ("A+", "A"):
        return "green"
    elif grade == "B":
        return "yellow"
    elif grade == "C":
        return "dark_orange"
    return "red"


def get_performance_message(percentage: float) -> str:
    if percentage >= 90:
        return "Outstanding! You're a quiz master!"
    elif percentage >= 80:
        return "Excellent work! Keep it up!"
    elif percentage >= 70:
        return "Good job! You're getting there!"
    elif percentage >= 60:
        return "Not bad! Room for improvement."
    return "Keep practicing! You'll get better!"


def format_time(seconds: float) -> str:
    """Format a duration as '2m 5s', or '45s' under a minute."""
    minutes, secs = divmod(int(seconds), 60)
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


@dataclass(frozen=True)
class QuizResult:
    quiz: Quiz
    score: int
    total_possible_points: int
    time_spent_seconds: float
    correct_answer_count: int
    total_question_count: int
    completed_at: datetime

    @property
    def percentage(self) -> float:
        if self.total_possible_points <= 0:
            return 0.0
        pct = self.score * 100 / self.total_possible_points
        return min(max(pct, 0.0), 100.0)

    @property
    def grade(self) -> str:
        return get_grade(self.percentage)

    @property
    def performance_message(self) -> str:
        return get_performance_message(self.percentage)

    @property
    def is_excellent(self) -> bool:
        return self.percentage >= 80


def build_result(
    quiz: Quiz,
    score: int,
    answers: list,
    started_at: datetime,
    completed_at: datetime,
) -> QuizResult:
    """Summarize a finished attempt. ``answers`` holds one bool per submitted question."""
    return QuizResult(
        quiz=quiz,
        score=score,
        total_possible_points=quiz.total_points,
        time_spent_seconds=max((completed_at - started_at).total_seconds(), 0.0),
        correct_answer_count=sum(1 for correct in answers if correct),
        total_question_count=len(quiz.questions),
        completed_at=completed_at,
    )
