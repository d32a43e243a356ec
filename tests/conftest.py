from datetime import datetime, timedelta

import pytest

from quizzone.catalog import load_catalog
from quizzone.db import init_db
from quizzone.models import Difficulty, Question, QuestionType, Quiz, QuizCategory


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_quizzone.db")
    return db_path


@pytest.fixture
def ready_db(tmp_db):
    init_db(tmp_db)
    return tmp_db


@pytest.fixture
def catalog():
    return load_catalog(now=datetime(2025, 9, 1, 9, 0))


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 9, 1, 12, 0, 0))


class ManualTimer:
    """Stands in for CountdownTimer; tests fire ticks by hand."""

    def __init__(self, on_tick):
        self.on_tick = on_tick
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def tick(self, times: int = 1):
        for _ in range(times):
            if not self.cancelled:
                self.on_tick()


@pytest.fixture
def timers():
    return []


@pytest.fixture
def timer_factory(timers):
    def factory(on_tick):
        timer = ManualTimer(on_tick)
        timers.append(timer)
        return timer
    return factory


@pytest.fixture
def make_quiz():
    """Build a quiz whose questions are worth the given points; answer 0 is always correct."""
    def _make(points=(10, 20), quiz_id="test-quiz", category=QuizCategory.FINANCE, minutes=1):
        questions = tuple(
            Question(
                id=f"{quiz_id}-{i}",
                text=f"Question {i}?",
                type=QuestionType.MULTIPLE_CHOICE,
                options=("right", "wrong", "also wrong"),
                correct_answer_index=0,
                explanation=f"Explanation {i}",
                points=p,
            )
            for i, p in enumerate(points, 1)
        )
        return Quiz(
            id=quiz_id, title="Test Quiz", category=category, difficulty=Difficulty.EASY,
            questions=questions, estimated_time_minutes=minutes,
        )
    return _make
