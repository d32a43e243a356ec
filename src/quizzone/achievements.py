"""Streak transitions and achievement unlock rules."""
from datetime import datetime
from typing import Optional

from quizzone.models import Achievement, QuizCategory

FIRST_STEPS = "first_steps"
QUIZ_MASTER = "quiz_master"
FINANCIAL_GURU = "financial_guru"
STREAK_CHAMPION = "streak_champion"
HIGH_SCORER = "high_scorer"

# id, title, description, icon, requirement
ACHIEVEMENT_DEFINITIONS = [
    (FIRST_STEPS, "First Steps", "Complete your first quiz", "star.fill", 1),
    (QUIZ_MASTER, "Quiz Master", "Complete 10 quizzes", "crown.fill", 10),
    (FINANCIAL_GURU, "Financial Guru", "Complete 5 finance quizzes", "dollarsign.circle.fill", 5),
    (STREAK_CHAMPION, "Streak Champion", "Maintain a 7-day streak", "flame.fill", 7),
    (HIGH_SCORER, "High Scorer", "Reach 1000 total points", "trophy.fill", 1000),
]


def create_achievements() -> list[Achievement]:
    """Return the canonical achievement set, all locked with zero progress."""
    return [
        Achievement(id=aid, title=title, description=desc, icon=icon, requirement=req)
        for aid, title, desc, icon, req in ACHIEVEMENT_DEFINITIONS
    ]


def next_streak(streak: int, last_played: Optional[datetime], now: datetime) -> int:
    """Calculate the streak after completing a quiz at ``now``.

    Days are compared by calendar date, so playing at 23:59 and again at
    00:01 counts as consecutive days.

    Args:
        streak: Current streak in days
        last_played: When a quiz was last completed, or None if never
        now: Completion time of the quiz being recorded

    Returns:
        The new streak value.
    """
    if last_played is None:
        return 1
    days_between = (now.date() - last_played.date()).days
    if days_between == 1:
        return streak + 1
    if days_between > 1:
        return 1
    # Same day, or a clock that moved backwards
    return streak


def achievement_counters(
    completed_quiz_ids: list,
    total_score: int,
    streak: int,
    categories: dict,
) -> dict:
    """Current counter value for each achievement id.

    ``categories`` maps quiz id to QuizCategory; ids missing from it do not
    count towards category achievements.
    """
    finance = sum(1 for qid in completed_quiz_ids if categories.get(qid) == QuizCategory.FINANCE)
    return {
        FIRST_STEPS: len(completed_quiz_ids),
        QUIZ_MASTER: len(completed_quiz_ids),
        FINANCIAL_GURU: finance,
        STREAK_CHAMPION: streak,
        HIGH_SCORER: total_score,
    }


def update_achievement(achievement: Achievement, value: int, now: datetime) -> bool:
    """Apply a counter value to an achievement. Returns True if it just unlocked.

    Progress never decreases, so an unlocked achievement stays unlocked and
    keeps its first unlock date.
    """
    achievement.progress = max(achievement.progress, value)
    if achievement.is_unlocked:
        return False
    if achievement.progress >= achievement.requirement:
        achievement.is_unlocked = True
        achievement.unlocked_date = now
        return True
    return False


def evaluate_achievements(achievements: list[Achievement], counters: dict, now: datetime) -> list[Achievement]:
    """Update every known achievement in place; return the ones newly unlocked."""
    unlocked = []
    for achievement in achievements:
        if achievement.id not in counters:
            continue
        if update_achievement(achievement, counters[achievement.id], now):
            unlocked.append(achievement)
    return unlocked
