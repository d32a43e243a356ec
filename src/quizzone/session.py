"""Quiz session engine: question flow, scoring and the countdown timer."""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import partial
from typing import Callable, Optional

from quizzone.models import Question, Quiz
from quizzone.observable import Observable
from quizzone.results import QuizResult, build_result

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0


class SessionState(Enum):
    IDLE = "idle"
    SHOWING_QUESTION = "showing_question"
    SHOWING_EXPLANATION = "showing_explanation"
    COMPLETED = "completed"


class CountdownTimer:
    """Calls ``on_tick`` every ``interval`` seconds on a daemon thread until cancelled."""

    def __init__(self, on_tick: Callable[[], None], interval: float = TICK_SECONDS):
        self._on_tick = on_tick
        self._interval = interval
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="quiz-countdown", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            self._on_tick()

    def cancel(self) -> None:
        """Stop ticking and wait for the thread to exit."""
        self._stopped.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    @property
    def active(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stopped.is_set()


@dataclass(frozen=True)
class SessionSnapshot:
    state: SessionState
    quiz: Optional[Quiz]
    question: Optional[Question]
    question_number: int
    total_questions: int
    progress: float
    score: int
    remaining_seconds: int
    selected_answer_index: Optional[int]
    last_answer_correct: Optional[bool]

    @property
    def explanation_visible(self) -> bool:
        return self.state == SessionState.SHOWING_EXPLANATION

    @property
    def completed(self) -> bool:
        return self.state == SessionState.COMPLETED


class QuizSession(Observable):
    """One quiz attempt at a time.

    Intents that are not valid in the current state are ignored. The
    countdown is informational only: reaching zero never submits or ends
    the quiz. On completion the score is reported to the progress store,
    if one was given.
    """

    def __init__(
        self,
        progress_store=None,
        catalog=None,
        clock: Callable[[], datetime] = datetime.now,
        timer_factory: Callable = CountdownTimer,
    ):
        super().__init__()
        self.progress_store = progress_store
        self.catalog = catalog if catalog is not None else getattr(progress_store, "catalog", None)
        self._clock = clock
        self._timer_factory = timer_factory
        self._lock = threading.RLock()
        self._timer = None
        self._generation = 0
        self._disposed = False
        self._clear()

    def _clear(self) -> None:
        self.quiz: Optional[Quiz] = None
        self.state = SessionState.IDLE
        self.current_question_index = 0
        self.selected_answer_index: Optional[int] = None
        self.score = 0
        self.remaining_seconds = 0
        self.started_at: Optional[datetime] = None
        self.completed_at: Optional[datetime] = None
        self._answers: list[bool] = []
        self._result: Optional[QuizResult] = None

    # --- timer -----------------------------------------------------------

    def _detach_timer(self):
        """Take ownership of the running timer away from the session (lock held)."""
        timer, self._timer = self._timer, None
        self._generation += 1
        return timer

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self.state in (SessionState.IDLE, SessionState.COMPLETED):
                return
            if self.remaining_seconds <= 0:
                return
            self.remaining_seconds -= 1
        self._notify()

    @property
    def timer_active(self) -> bool:
        return self._timer is not None

    # --- accessors -------------------------------------------------------

    @property
    def current_question(self) -> Optional[Question]:
        if self.quiz is None or self.current_question_index >= len(self.quiz.questions):
            return None
        return self.quiz.questions[self.current_question_index]

    @property
    def is_last_question(self) -> bool:
        if self.quiz is None:
            return True
        return self.current_question_index >= len(self.quiz.questions) - 1

    @property
    def explanation_visible(self) -> bool:
        return self.state == SessionState.SHOWING_EXPLANATION

    @property
    def completed(self) -> bool:
        return self.state == SessionState.COMPLETED

    @property
    def progress(self) -> float:
        if self.quiz is None or not self.quiz.questions:
            return 1.0 if self.completed else 0.0
        if self.completed:
            return 1.0
        return self.current_question_index / len(self.quiz.questions)

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            total = len(self.quiz.questions) if self.quiz is not None else 0
            return SessionSnapshot(
                state=self.state,
                quiz=self.quiz,
                question=self.current_question,
                question_number=min(self.current_question_index + 1, total),
                total_questions=total,
                progress=self.progress,
                score=self.score,
                remaining_seconds=self.remaining_seconds,
                selected_answer_index=self.selected_answer_index,
                last_answer_correct=self._answers[-1] if self.explanation_visible else None,
            )

    # --- intents ---------------------------------------------------------

    def start_quiz(self, quiz: Quiz) -> bool:
        with self._lock:
            if self._disposed:
                logger.debug("start_quiz on a disposed session ignored")
                return False
            old_timer = self._detach_timer()
            self._clear()
            now = self._clock()
            self.quiz = quiz
            self.started_at = now
            if not quiz.questions:
                self.state = SessionState.COMPLETED
                self.completed_at = now
                self._result = build_result(quiz, 0, [], now, now)
            else:
                self.state = SessionState.SHOWING_QUESTION
                self.remaining_seconds = quiz.estimated_time_minutes * 60
                self._timer = self._timer_factory(partial(self._tick, self._generation))
                self._timer.start()
        if old_timer is not None:
            old_timer.cancel()
        self._notify()
        return True

    def start_quiz_by_id(self, quiz_id: str) -> bool:
        quiz = self.catalog.get_quiz(quiz_id) if self.catalog is not None else None
        if quiz is None:
            logger.debug("Unknown quiz id %r", quiz_id)
            return False
        return self.start_quiz(quiz)

    def select_answer(self, index: int) -> bool:
        with self._lock:
            question = self.current_question
            if self.state != SessionState.SHOWING_QUESTION or question is None:
                return False
            if not 0 <= index < len(question.options):
                logger.debug("Answer index %d out of range for %r", index, question.id)
                return False
            self.selected_answer_index = index
        self._notify()
        return True

    def submit_answer(self) -> bool:
        with self._lock:
            question = self.current_question
            if self.state != SessionState.SHOWING_QUESTION or question is None:
                return False
            if self.selected_answer_index is None:
                return False
            correct = self.selected_answer_index == question.correct_answer_index
            if correct:
                self.score += question.points
            self._answers.append(correct)
            self.state = SessionState.SHOWING_EXPLANATION
        self._notify()
        return True

    def next_question(self) -> bool:
        timer = None
        try:
            with self._lock:
                if self.state != SessionState.SHOWING_EXPLANATION:
                    return False
                if self.is_last_question:
                    timer = self._detach_timer()
                    self._finish()
                else:
                    self.current_question_index += 1
                    self.selected_answer_index = None
                    self.state = SessionState.SHOWING_QUESTION
        finally:
            # Joined outside the lock so a pending tick can't deadlock the cancel
            if timer is not None:
                timer.cancel()
        self._notify()
        return True

    def _finish(self) -> None:
        self.state = SessionState.COMPLETED
        self.completed_at = self._clock()
        self._result = build_result(self.quiz, self.score, self._answers, self.started_at, self.completed_at)
        if self.progress_store is not None:
            try:
                self.progress_store.complete_quiz(self.quiz, self.score)
            except Exception:
                logger.exception("Could not record completion of %r", self.quiz.id)

    def reset_quiz(self) -> None:
        with self._lock:
            timer = self._detach_timer()
            self._clear()
        if timer is not None:
            timer.cancel()
        self._notify()

    def get_result(self) -> Optional[QuizResult]:
        with self._lock:
            if self.state != SessionState.COMPLETED:
                return None
            return self._result

    def dispose(self) -> None:
        """Cancel the countdown for good; later start_quiz calls are ignored."""
        with self._lock:
            self._disposed = True
            timer = self._detach_timer()
        if timer is not None:
            timer.cancel()
