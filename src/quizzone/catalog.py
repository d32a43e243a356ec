"""Read-only content catalog of quizzes and financial tips."""
import json
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

from quizzone.models import (
    Difficulty, FinancialTip, Question, QuestionType, Quiz, QuizCategory,
)

CONTENT_DIR = Path(__file__).parent / "content"


class CatalogError(ValueError):
    """Raised when content files hold a malformed quiz, question or tip."""


def _parse_question(data: dict) -> Question:
    options = tuple(data["options"])
    if len(options) < 2:
        raise CatalogError(f"Question {data['id']!r} needs at least two options")
    if len(set(options)) != len(options):
        raise CatalogError(f"Question {data['id']!r} has duplicate options")
    correct = data["correct_answer_index"]
    if not 0 <= correct < len(options):
        raise CatalogError(f"Question {data['id']!r} has correct answer {correct} out of range")
    points = data.get("points", 10)
    if points <= 0:
        raise CatalogError(f"Question {data['id']!r} must be worth a positive number of points")
    return Question(
        id=data["id"],
        text=data["text"],
        type=QuestionType(data["type"]),
        options=options,
        correct_answer_index=correct,
        explanation=data.get("explanation", ""),
        points=points,
    )


def _parse_quiz(data: dict) -> Quiz:
    return Quiz(
        id=data["id"],
        title=data["title"],
        category=QuizCategory(data["category"]),
        difficulty=Difficulty(data["difficulty"]),
        questions=tuple(_parse_question(q) for q in data["questions"]),
        estimated_time_minutes=data["estimated_time_minutes"],
        description=data.get("description", ""),
    )


def load_quizzes(content_dir: Path = CONTENT_DIR) -> list[Quiz]:
    """Parse all quizzes from quizzes.json, in file order."""
    data = json.loads((Path(content_dir) / "quizzes.json").read_text(encoding="utf-8"))
    try:
        quizzes = [_parse_quiz(q) for q in data["quizzes"]]
    except CatalogError:
        raise
    except (KeyError, ValueError) as e:
        raise CatalogError(f"Malformed quiz content: {e}") from e
    ids = [q.id for q in quizzes]
    if len(set(ids)) != len(ids):
        raise CatalogError("Quiz ids must be unique")
    return quizzes


def load_tips(content_dir: Path = CONTENT_DIR, now: Optional[datetime] = None) -> list[FinancialTip]:
    """Parse tips from tips.json. Each tip is dated ``days_ago`` days before now."""
    now = now or datetime.now()
    data = json.loads((Path(content_dir) / "tips.json").read_text(encoding="utf-8"))
    return [
        FinancialTip(
            id=t["id"],
            title=t["title"],
            content=t["content"],
            category=t["category"],
            date=now - timedelta(days=t.get("days_ago", 0)),
            reading_time_minutes=t["reading_time_minutes"],
        )
        for t in data["tips"]
    ]


def get_quizzes_by_category(quizzes: list[Quiz], category: QuizCategory) -> list[Quiz]:
    return [q for q in quizzes if q.category == category]


def get_quizzes_by_difficulty(quizzes: list[Quiz], difficulty: Difficulty) -> list[Quiz]:
    return [q for q in quizzes if q.difficulty == difficulty]


def search_quizzes(quizzes: list[Quiz], text: str) -> list[Quiz]:
    """Case-insensitive match on title or description."""
    needle = text.casefold()
    return [
        q for q in quizzes
        if needle in q.title.casefold() or needle in q.description.casefold()
    ]


class Catalog:
    """Static quizzes and tips for the lifetime of the process."""

    def __init__(self, quizzes: list[Quiz], tips: list[FinancialTip]):
        self._quizzes = tuple(quizzes)
        self._tips = tuple(tips)
        self._by_id = {q.id: q for q in self._quizzes}

    def all_quizzes(self) -> list[Quiz]:
        return list(self._quizzes)

    def all_tips(self) -> list[FinancialTip]:
        return list(self._tips)

    def get_quiz(self, quiz_id: str) -> Optional[Quiz]:
        return self._by_id.get(quiz_id)

    def get_quizzes_by_category(self, category: QuizCategory) -> list[Quiz]:
        return get_quizzes_by_category(self.all_quizzes(), category)

    def get_quizzes_by_difficulty(self, difficulty: Difficulty) -> list[Quiz]:
        return get_quizzes_by_difficulty(self.all_quizzes(), difficulty)

    def filter_quizzes(
        self,
        category: Optional[QuizCategory] = None,
        difficulty: Optional[Difficulty] = None,
        search: str = "",
    ) -> list[Quiz]:
        """Apply the quiz list filters in order: category, difficulty, search text."""
        quizzes = self.all_quizzes()
        if category is not None:
            quizzes = get_quizzes_by_category(quizzes, category)
        if difficulty is not None:
            quizzes = get_quizzes_by_difficulty(quizzes, difficulty)
        if search:
            quizzes = search_quizzes(quizzes, search)
        return quizzes

    def get_todays_tip(self, today: Optional[date] = None) -> Optional[FinancialTip]:
        today = today or date.today()
        return next((t for t in self._tips if t.date.date() == today), None)

    def get_tip_categories(self) -> list[str]:
        return sorted({t.category for t in self._tips})

    def get_tips_by_category(self, category: Optional[str] = None) -> list[FinancialTip]:
        """All tips newest first, or the tips of one category in catalog order."""
        if category is None:
            return sorted(self._tips, key=lambda t: t.date, reverse=True)
        return [t for t in self._tips if t.category == category]


def load_catalog(content_dir: Path = CONTENT_DIR, now: Optional[datetime] = None) -> Catalog:
    return Catalog(load_quizzes(content_dir), load_tips(content_dir, now=now))
