"""Profile dashboard: levels, summary statistics and achievement lists."""
from quizzone.models import Achievement, UserProgress

XP_PER_LEVEL = 100

ACHIEVEMENT_FILTERS = ("all", "unlocked", "locked")


def get_current_level(total_score: int) -> int:
    return max(1, total_score // XP_PER_LEVEL + 1)


def get_next_level_requirement(total_score: int) -> int:
    return get_current_level(total_score) * XP_PER_LEVEL


def get_level_progress(total_score: int) -> float:
    """Fraction of the way through the current level, 0.0 to <1.0."""
    return (total_score % XP_PER_LEVEL) / XP_PER_LEVEL


def filter_achievements(achievements: list[Achievement], which: str = "all") -> list[Achievement]:
    if which == "unlocked":
        return [a for a in achievements if a.is_unlocked]
    elif which == "locked":
        return [a for a in achievements if not a.is_unlocked]
    elif which == "all":
        return list(achievements)
    raise ValueError(f"Unknown achievement filter: {which!r}")


def get_recent_achievements(progress: UserProgress, limit: int = 3) -> list[Achievement]:
    return filter_achievements(progress.achievements, "unlocked")[:limit]


def get_favorite_categories_text(progress: UserProgress) -> str:
    if not progress.preferred_categories:
        return "None selected"
    return ", ".join(c.value for c in progress.preferred_categories)


def get_profile_stats(progress: UserProgress) -> dict:
    return {
        "quizzes_completed": len(progress.completed_quiz_ids),
        "total_score": progress.total_score,
        "streak": progress.streak,
        "achievements_unlocked": len(filter_achievements(progress.achievements, "unlocked")),
        "achievements_total": len(progress.achievements),
        "level": get_current_level(progress.total_score),
        "next_level_xp": get_next_level_requirement(progress.total_score),
        "level_progress": get_level_progress(progress.total_score),
    }
