"""Data classes for the quiz domain model."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class QuizCategory(Enum):
    FINANCE = "Finance"
    ENTERTAINMENT = "Entertainment"
    MIXED = "Mixed"
    PUZZLE = "Puzzle"

    @property
    def icon(self) -> str:
        return {
            QuizCategory.FINANCE: "dollarsign.circle.fill",
            QuizCategory.ENTERTAINMENT: "gamecontroller.fill",
            QuizCategory.MIXED: "star.fill",
            QuizCategory.PUZZLE: "puzzlepiece.fill",
        }[self]

    @property
    def color(self) -> str:
        return {
            QuizCategory.FINANCE: "#1ed55f",
            QuizCategory.ENTERTAINMENT: "#ffff03",
            QuizCategory.MIXED: "#ffc934",
            QuizCategory.PUZZLE: "#eb262f",
        }[self]


class Difficulty(Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @property
    def color(self) -> str:
        return {
            Difficulty.EASY: "#1ed55f",
            Difficulty.MEDIUM: "#ffc934",
            Difficulty.HARD: "#eb262f",
        }[self]


class QuestionType(Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    PUZZLE = "puzzle"
    SCENARIO = "scenario"


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    type: QuestionType
    options: tuple
    correct_answer_index: int
    explanation: str = ""
    points: int = 10


@dataclass(frozen=True)
class Quiz:
    id: str
    title: str
    category: QuizCategory
    difficulty: Difficulty
    questions: tuple
    estimated_time_minutes: int
    description: str = ""

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)


@dataclass(frozen=True)
class FinancialTip:
    id: str
    title: str
    content: str
    category: str
    date: datetime
    reading_time_minutes: int


@dataclass
class Achievement:
    id: str
    title: str
    description: str
    icon: str
    requirement: int
    progress: int = 0
    is_unlocked: bool = False
    unlocked_date: Optional[datetime] = None

    @property
    def progress_percentage(self) -> float:
        if self.requirement <= 0:
            return 1.0
        return min(self.progress / self.requirement, 1.0)


@dataclass
class UserProgress:
    completed_quiz_ids: list = field(default_factory=list)  # one entry per attempt
    total_score: int = 0
    achievements: list = field(default_factory=list)
    streak: int = 0
    last_played_date: Optional[datetime] = None
    preferred_categories: list = field(default_factory=list)
    preferred_difficulty: Difficulty = Difficulty.EASY
    onboarding_completed: bool = False
