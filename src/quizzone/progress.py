"""Durable user progress: completions, score, streak and achievements."""
import json
import logging
from datetime import datetime
from typing import Callable, Optional

from quizzone import db
from quizzone.achievements import (
    achievement_counters, create_achievements, evaluate_achievements, next_streak,
)
from quizzone.catalog import Catalog
from quizzone.models import Achievement, Difficulty, Quiz, QuizCategory, UserProgress
from quizzone.observable import Observable

logger = logging.getLogger(__name__)

PROGRESS_KEY = "user_progress"


def _date_to_str(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _str_to_date(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value is not None else None


def _non_negative_int(value, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def _positive_int(value, name: str) -> int:
    if _non_negative_int(value, name) < 1:
        raise ValueError(f"{name} must be at least 1, got {value!r}")
    return value


def _bool(value, name: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{name} must be a boolean, got {value!r}")
    return value


def _str_list(value, name: str) -> list:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise TypeError(f"{name} must be a list of strings, got {value!r}")
    return list(value)


def progress_to_dict(progress: UserProgress) -> dict:
    return {
        "completed_quiz_ids": list(progress.completed_quiz_ids),
        "total_score": progress.total_score,
        "achievements": [
            {
                "id": a.id,
                "title": a.title,
                "description": a.description,
                "icon": a.icon,
                "requirement": a.requirement,
                "progress": a.progress,
                "is_unlocked": a.is_unlocked,
                "unlocked_date": _date_to_str(a.unlocked_date),
            }
            for a in progress.achievements
        ],
        "streak": progress.streak,
        "last_played_date": _date_to_str(progress.last_played_date),
        "preferred_categories": [c.value for c in progress.preferred_categories],
        "preferred_difficulty": progress.preferred_difficulty.value,
        "onboarding_completed": progress.onboarding_completed,
    }


def progress_from_dict(data: dict) -> UserProgress:
    """Build UserProgress from its stored form.

    Raises KeyError, TypeError or ValueError if the record is malformed.
    """
    achievements = [
        Achievement(
            id=a["id"],
            title=a["title"],
            description=a["description"],
            icon=a["icon"],
            requirement=_positive_int(a["requirement"], "requirement"),
            progress=_non_negative_int(a["progress"], "progress"),
            is_unlocked=_bool(a["is_unlocked"], "is_unlocked"),
            unlocked_date=_str_to_date(a["unlocked_date"]),
        )
        for a in data["achievements"]
    ]
    return UserProgress(
        completed_quiz_ids=_str_list(data["completed_quiz_ids"], "completed_quiz_ids"),
        total_score=_non_negative_int(data["total_score"], "total_score"),
        achievements=achievements,
        streak=_non_negative_int(data["streak"], "streak"),
        last_played_date=_str_to_date(data["last_played_date"]),
        preferred_categories=[QuizCategory(c) for c in _str_list(data["preferred_categories"], "preferred_categories")],
        preferred_difficulty=Difficulty(data["preferred_difficulty"]),
        onboarding_completed=_bool(data.get("onboarding_completed", False), "onboarding_completed"),
    )


def encode_progress(progress: UserProgress) -> bytes:
    return json.dumps(progress_to_dict(progress)).encode("utf-8")


def decode_progress(blob: bytes) -> UserProgress:
    return progress_from_dict(json.loads(blob.decode("utf-8")))


def new_progress() -> UserProgress:
    """Fresh record for a first launch."""
    return UserProgress(achievements=create_achievements())


class ProgressStore(Observable):
    """Owns the persisted UserProgress record and notifies subscribers on change."""

    def __init__(self, db_path: str, catalog: Catalog, clock: Callable[[], datetime] = datetime.now):
        super().__init__()
        self.db_path = db_path
        self.catalog = catalog
        self._clock = clock
        self.progress = self.load()

    def load(self) -> UserProgress:
        blob = db.load(self.db_path, PROGRESS_KEY)
        if blob is None:
            return new_progress()
        try:
            return decode_progress(blob)
        except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Stored progress is unreadable, starting fresh: %s", e)
            return new_progress()

    def save(self) -> bool:
        saved = db.save(self.db_path, PROGRESS_KEY, encode_progress(self.progress))
        if not saved:
            logger.warning("Progress not saved; keeping in-memory state")
        return saved

    def complete_quiz(self, quiz: Quiz, score: int) -> list[Achievement]:
        """Record a finished attempt. Returns achievements unlocked by it."""
        now = self._clock()
        p = self.progress
        p.completed_quiz_ids.append(quiz.id)
        p.total_score += max(score, 0)
        p.streak = next_streak(p.streak, p.last_played_date, now)
        p.last_played_date = now

        categories = {q.id: q.category for q in self.catalog.all_quizzes()}
        categories[quiz.id] = quiz.category
        counters = achievement_counters(p.completed_quiz_ids, p.total_score, p.streak, categories)
        unlocked = evaluate_achievements(p.achievements, counters, now)
        for a in unlocked:
            logger.info("Achievement unlocked: %s", a.title)

        self.save()
        self._notify()
        return unlocked

    def complete_onboarding(self, categories, difficulty: Difficulty) -> bool:
        """Store the initial preferences. Only the first call has any effect."""
        p = self.progress
        if p.onboarding_completed:
            logger.debug("Onboarding already completed; ignoring preferences")
            return False
        chosen = set(categories)
        p.preferred_categories = [c for c in QuizCategory if c in chosen]
        p.preferred_difficulty = difficulty
        p.onboarding_completed = True
        self.save()
        self._notify()
        return True

    def has_completed_quiz(self, quiz_id: str) -> bool:
        return quiz_id in self.progress.completed_quiz_ids

    def unlocked_achievements(self) -> list[Achievement]:
        return [a for a in self.progress.achievements if a.is_unlocked]

    def get_quizzes_by_category(self, category: QuizCategory) -> list[Quiz]:
        return self.catalog.get_quizzes_by_category(category)

    def get_quizzes_by_difficulty(self, difficulty: Difficulty) -> list[Quiz]:
        return self.catalog.get_quizzes_by_difficulty(difficulty)
