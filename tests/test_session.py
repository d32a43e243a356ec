import threading
import time

import pytest

from quizzone.progress import ProgressStore
from quizzone.session import CountdownTimer, QuizSession, SessionState


@pytest.fixture
def store(ready_db, catalog, clock):
    return ProgressStore(ready_db, catalog, clock=clock)


@pytest.fixture
def session(store, clock, timer_factory):
    s = QuizSession(store, clock=clock, timer_factory=timer_factory)
    yield s
    s.dispose()


def play(session, answers):
    """Answer each question with the given option index and advance."""
    for index in answers:
        session.select_answer(index)
        session.submit_answer()
        session.next_question()


def test_new_session_is_idle(session):
    assert session.state == SessionState.IDLE
    assert session.current_question is None
    assert session.get_result() is None


def test_start_quiz_sets_up_attempt(session, make_quiz, clock, timers):
    session.start_quiz(make_quiz(minutes=2))
    assert session.state == SessionState.SHOWING_QUESTION
    assert session.current_question_index == 0
    assert session.remaining_seconds == 120
    assert session.started_at == clock.now
    assert timers[0].started


def test_all_correct_scores_full_points(session, make_quiz):
    quiz = make_quiz(points=(10, 20, 5))
    session.start_quiz(quiz)
    play(session, [0, 0, 0])
    result = session.get_result()
    assert session.completed
    assert result.score == 35
    assert result.correct_answer_count == 3
    assert result.grade == "A+"


def test_one_right_one_wrong_scenario(session, make_quiz):
    session.start_quiz(make_quiz(points=(10, 20)))
    play(session, [0, 1])
    result = session.get_result()
    assert result.score == 10
    assert result.correct_answer_count == 1
    assert result.total_question_count == 2
    assert result.grade == "D"


def test_correct_count_tracked_per_question(session, make_quiz):
    """A right answer on a later question is not credited to earlier ones."""
    session.start_quiz(make_quiz(points=(10, 10, 10)))
    play(session, [1, 2, 0])
    assert session.get_result().correct_answer_count == 1


def test_select_out_of_range_rejected(session, make_quiz):
    session.start_quiz(make_quiz())
    session.select_answer(1)
    assert session.select_answer(5) is False
    assert session.select_answer(-1) is False
    assert session.selected_answer_index == 1


def test_reselect_before_submit(session, make_quiz):
    session.start_quiz(make_quiz())
    session.select_answer(2)
    session.select_answer(0)
    session.submit_answer()
    assert session.score == 10


def test_submit_without_selection_ignored(session, make_quiz):
    session.start_quiz(make_quiz())
    assert session.submit_answer() is False
    assert session.state == SessionState.SHOWING_QUESTION


def test_submit_is_one_way(session, make_quiz):
    session.start_quiz(make_quiz())
    session.select_answer(0)
    session.submit_answer()
    assert session.explanation_visible
    assert session.select_answer(1) is False
    assert session.submit_answer() is False
    assert session.score == 10


def test_next_before_submit_ignored(session, make_quiz):
    session.start_quiz(make_quiz())
    assert session.next_question() is False
    assert session.current_question_index == 0


def test_next_clears_selection(session, make_quiz):
    session.start_quiz(make_quiz())
    session.select_answer(0)
    session.submit_answer()
    session.next_question()
    assert session.current_question_index == 1
    assert session.selected_answer_index is None
    assert not session.explanation_visible


def test_completion_reports_to_progress_store(session, store, make_quiz):
    session.start_quiz(make_quiz(points=(10, 20)))
    play(session, [0, 0])
    assert store.progress.total_score == 30
    assert store.progress.completed_quiz_ids == ["test-quiz"]


def test_intents_after_completion_ignored(session, store, make_quiz):
    session.start_quiz(make_quiz(points=(10,)))
    play(session, [0])
    assert session.select_answer(0) is False
    assert session.next_question() is False
    assert store.progress.completed_quiz_ids == ["test-quiz"]


def test_time_spent(session, make_quiz, clock):
    session.start_quiz(make_quiz(points=(10,)))
    clock.advance(seconds=75)
    play(session, [0])
    assert session.get_result().time_spent_seconds == 75.0


def test_progress_fraction(session, make_quiz):
    session.start_quiz(make_quiz(points=(10, 10, 10, 10)))
    assert session.progress == 0.0
    play(session, [0])
    assert session.progress == 0.25
    play(session, [0, 0, 0])
    assert session.progress == 1.0


def test_empty_quiz_completes_immediately(session, store, make_quiz, timers):
    session.start_quiz(make_quiz(points=()))
    assert session.completed
    result = session.get_result()
    assert result.score == 0
    assert result.total_question_count == 0
    assert timers == []
    assert store.progress.completed_quiz_ids == []


def test_reset_returns_to_idle(session, make_quiz, timers):
    session.start_quiz(make_quiz())
    session.select_answer(0)
    session.submit_answer()
    session.reset_quiz()
    assert session.state == SessionState.IDLE
    assert session.score == 0
    assert session.quiz is None
    assert timers[0].cancelled
    session.reset_quiz()  # always safe


def test_start_discards_previous_attempt(session, store, make_quiz, timers):
    session.start_quiz(make_quiz(quiz_id="first"))
    session.select_answer(0)
    session.submit_answer()
    session.start_quiz(make_quiz(quiz_id="second"))
    assert session.quiz.id == "second"
    assert session.score == 0
    assert timers[0].cancelled
    assert not timers[1].cancelled
    assert store.progress.completed_quiz_ids == []


def test_start_quiz_by_id(session, catalog):
    assert session.start_quiz_by_id("financial-puzzles")
    assert session.quiz.title == "Financial Puzzles"
    assert session.start_quiz_by_id("nope") is False
    assert session.quiz.id == "financial-puzzles"


# --- Countdown ---


def test_countdown_ticks_and_clamps(session, make_quiz, timers):
    session.start_quiz(make_quiz(minutes=1))
    timers[0].tick(5)
    assert session.remaining_seconds == 55
    timers[0].tick(100)
    assert session.remaining_seconds == 0
    # Running out of time does not end the quiz
    assert session.state == SessionState.SHOWING_QUESTION


def test_countdown_cancelled_on_completion(session, make_quiz, timers):
    session.start_quiz(make_quiz(points=(10,)))
    play(session, [0])
    assert timers[0].cancelled
    assert not session.timer_active


def test_stale_timer_ticks_ignored(session, make_quiz, timers):
    session.start_quiz(make_quiz(quiz_id="a", minutes=1))
    old_tick = timers[0].on_tick
    session.start_quiz(make_quiz(quiz_id="b", minutes=1))
    old_tick()
    assert session.remaining_seconds == 60


def test_dispose_cancels_and_blocks_restart(session, make_quiz, timers):
    session.start_quiz(make_quiz())
    session.dispose()
    assert timers[0].cancelled
    assert session.start_quiz(make_quiz()) is False
    assert len(timers) == 1


def test_real_countdown_timer_ticks_and_stops():
    ticks = []
    timer = CountdownTimer(lambda: ticks.append(1), interval=0.01)
    timer.start()
    deadline = time.monotonic() + 2
    while len(ticks) < 3 and time.monotonic() < deadline:
        time.sleep(0.01)
    timer.cancel()
    assert len(ticks) >= 3
    assert not timer.active
    count = len(ticks)
    time.sleep(0.05)
    assert len(ticks) == count


def test_session_with_real_timer_leaves_no_thread(store, make_quiz):
    session = QuizSession(store)
    session.start_quiz(make_quiz())
    assert any(t.name == "quiz-countdown" for t in threading.enumerate())
    session.dispose()
    assert not any(t.name == "quiz-countdown" for t in threading.enumerate())


# --- Published state ---


def test_snapshot(session, make_quiz):
    session.start_quiz(make_quiz(points=(10, 20)))
    snap = session.snapshot()
    assert snap.question_number == 1
    assert snap.total_questions == 2
    assert snap.question.id == "test-quiz-1"
    assert not snap.explanation_visible
    assert snap.last_answer_correct is None
    session.select_answer(1)
    session.submit_answer()
    snap = session.snapshot()
    assert snap.explanation_visible
    assert snap.last_answer_correct is False
    assert snap.selected_answer_index == 1


def test_subscribers_see_every_intent(session, make_quiz, timers):
    states = []
    session.subscribe(lambda s: states.append(s.state))
    session.start_quiz(make_quiz(points=(10,)))
    timers[0].tick()
    play(session, [0])
    assert states == [
        SessionState.SHOWING_QUESTION,
        SessionState.SHOWING_QUESTION,
        SessionState.SHOWING_QUESTION,
        SessionState.SHOWING_EXPLANATION,
        SessionState.COMPLETED,
    ]


def test_failing_progress_subscriber_does_not_leak_timer(store, make_quiz):
    def broken(_):
        raise RuntimeError("render failed")

    store.subscribe(broken)
    session = QuizSession(store)
    session.start_quiz(make_quiz(points=(10,)))
    session.select_answer(0)
    session.submit_answer()
    assert session.next_question() is True
    assert session.completed
    assert store.progress.total_score == 10
    assert not any(t.name == "quiz-countdown" and t.is_alive() for t in threading.enumerate())
    session.dispose()
    assert not any(t.name == "quiz-countdown" and t.is_alive() for t in threading.enumerate())


def test_failing_store_still_completes_and_cancels_timer(make_quiz, timers, timer_factory, clock):
    class BrokenStore:
        catalog = None

        def complete_quiz(self, quiz, score):
            raise RuntimeError("disk on fire")

    session = QuizSession(BrokenStore(), clock=clock, timer_factory=timer_factory)
    session.start_quiz(make_quiz(points=(10,)))
    session.select_answer(0)
    session.submit_answer()
    assert session.next_question() is True
    assert session.get_result().score == 10
    assert timers[0].cancelled
