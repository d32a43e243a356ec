"""Interactive CLI application."""
import logging
import os
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.prompt import Prompt, IntPrompt

from quizzone.db import init_db, DEFAULT_DB_PATH
from quizzone.catalog import Catalog, load_catalog
from quizzone.dashboard import (
    ACHIEVEMENT_FILTERS, filter_achievements, get_favorite_categories_text,
    get_profile_stats, get_recent_achievements,
)
from quizzone.models import Difficulty, Quiz, QuizCategory
from quizzone.progress import ProgressStore
from quizzone.results import QuizResult, format_time, get_grade_color
from quizzone.session import QuizSession

console = Console()

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """User asked to leave the current quiz and go back to the menu."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str]) -> int:
    while True:
        answer = session_prompt(prompt).strip()
        if answer in choices:
            return int(answer)
        console.print(f"[red]Please choose one of: {', '.join(choices)}[/red]")


def show_welcome():
    console.print(Panel(
        "[bold]QuizzOne[/bold]\n[dim]Finance & trivia quizzes[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("play", "Pick a quiz and play it"),
        ("quizzes", "Browse all quizzes"),
        ("tips", "Financial tips"),
        ("profile", "Level, streak and stats"),
        ("achievements", "Achievement progress"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def run_onboarding(store: ProgressStore) -> None:
    console.print(Panel(
        "Choose your favorite topics and difficulty level to personalize your quiz experience.",
        title="Personalize", border_style="cyan",
    ))
    categories = list(QuizCategory)
    for i, c in enumerate(categories, 1):
        console.print(f"  [cyan]{i}[/cyan]) {c.value}")
    raw = Prompt.ask("Favorite categories (comma-separated numbers, blank for none)", default="")
    picked = []
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit() and 1 <= int(part) <= len(categories):
            picked.append(categories[int(part) - 1])
    difficulty = Prompt.ask(
        "Preferred difficulty", choices=[d.value for d in Difficulty], default=Difficulty.EASY.value,
    )
    store.complete_onboarding(picked, Difficulty(difficulty))
    console.print("[green]Preferences saved![/green]")


def quiz_table(quizzes: list[Quiz], store: ProgressStore, title: str = "Quizzes") -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Quiz", style="cyan")
    table.add_column("Category")
    table.add_column("Difficulty")
    table.add_column("Questions", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Done")
    for i, q in enumerate(quizzes, 1):
        table.add_row(
            str(i), q.title, q.category.value,
            f"[{q.difficulty.color}]{q.difficulty.value}[/{q.difficulty.color}]",
            str(len(q.questions)), f"{q.estimated_time_minutes} min",
            "[green]✓[/green]" if store.has_completed_quiz(q.id) else "",
        )
    return table


def choose_quiz(catalog: Catalog, store: ProgressStore) -> Optional[Quiz]:
    category = Prompt.ask("Category", choices=["all"] + [c.value for c in QuizCategory], default="all")
    difficulty = Prompt.ask("Difficulty", choices=["all"] + [d.value for d in Difficulty], default="all")
    search = Prompt.ask("Search", default="")
    quizzes = catalog.filter_quizzes(
        category=None if category == "all" else QuizCategory(category),
        difficulty=None if difficulty == "all" else Difficulty(difficulty),
        search=search.strip(),
    )
    if not quizzes:
        console.print("[yellow]No quizzes match those filters.[/yellow]")
        return None
    console.print(quiz_table(quizzes, store))
    number = IntPrompt.ask("Select quiz", choices=[str(i) for i in range(1, len(quizzes) + 1)])
    return quizzes[number - 1]


def show_result(result: QuizResult) -> None:
    color = get_grade_color(result.grade)
    console.print(Panel(
        f"[bold {color}]{result.grade}[/bold {color}]  {result.performance_message}\n\n"
        f"Score: [bold]{result.score}/{result.total_possible_points}[/bold] ({result.percentage:.0f}%)\n"
        f"Correct: [bold]{result.correct_answer_count}/{result.total_question_count}[/bold]\n"
        f"Time: [bold]{format_time(result.time_spent_seconds)}[/bold]",
        title=f"{result.quiz.title} — Results", border_style=color,
    ))


def run_quiz(session: QuizSession, quiz: Quiz) -> Optional[QuizResult]:
    store = session.progress_store
    unlocked_before = {a.id for a in store.unlocked_achievements()} if store is not None else set()
    session.start_quiz(quiz)
    console.print(f"\n[bold]{quiz.title}[/bold] — {len(quiz.questions)} questions "
                  f"[dim](type 'q' to leave)[/dim]\n")
    try:
        while not session.completed:
            snap = session.snapshot()
            question = snap.question
            console.print(Panel(
                question.text,
                title=f"Question {snap.question_number}/{snap.total_questions}",
                subtitle=f"Score {snap.score}  |  Time left {format_time(snap.remaining_seconds)}",
                border_style="cyan",
            ))
            for i, option in enumerate(question.options, 1):
                console.print(f"  [cyan]{i})[/cyan] {option}")
            choice = session_int_prompt(
                "\nYour answer", choices=[str(i) for i in range(1, len(question.options) + 1)],
            )
            session.select_answer(choice - 1)
            session.submit_answer()
            if session.snapshot().last_answer_correct:
                console.print(f"[green]Correct![/green] +{question.points}")
            else:
                answer = question.options[question.correct_answer_index]
                console.print(f"[red]Incorrect.[/red] Answer: [green]{answer}[/green]")
            if question.explanation:
                console.print(f"[dim]{question.explanation}[/dim]")
            session_prompt("[dim]Press Enter to continue[/dim]", default="")
            session.next_question()
    except SessionExitRequested:
        session.reset_quiz()
        console.print("[dim]Quiz abandoned. Progress was not recorded.[/dim]")
        return None

    result = session.get_result()
    session.reset_quiz()
    show_result(result)
    if store is not None:
        for a in store.unlocked_achievements():
            if a.id not in unlocked_before:
                console.print(f"[bold yellow]Achievement unlocked:[/bold yellow] {a.title} — {a.description}")
    return result


def cmd_play(session: QuizSession, catalog: Catalog, store: ProgressStore):
    console.print("\n[bold]Play a Quiz[/bold]")
    quiz = choose_quiz(catalog, store)
    if quiz is not None:
        run_quiz(session, quiz)


def cmd_quizzes(store: ProgressStore):
    for category in QuizCategory:
        quizzes = store.get_quizzes_by_category(category)
        if quizzes:
            console.print(quiz_table(quizzes, store, title=category.value))


def cmd_tips(catalog: Catalog):
    tip = catalog.get_todays_tip()
    if tip:
        console.print(Panel(tip.content, title=f"Today's Tip: {tip.title}", border_style="green"))
    category = Prompt.ask("Category", choices=["all"] + catalog.get_tip_categories(), default="all")
    tips = catalog.get_tips_by_category(None if category == "all" else category)
    table = Table(title="Financial Tips")
    table.add_column("Date")
    table.add_column("Category", style="cyan")
    table.add_column("Title")
    table.add_column("Read", justify="right")
    for t in tips:
        table.add_row(t.date.strftime("%b %d"), t.category, t.title, f"{t.reading_time_minutes} min")
    console.print(table)


def cmd_profile(store: ProgressStore):
    progress = store.progress
    stats = get_profile_stats(progress)
    console.print(Panel(
        f"[bold]Level {stats['level']}[/bold]  {progress.total_score}/{stats['next_level_xp']} XP",
        title="Profile", border_style="blue",
    ))
    bar_filled = int(stats["level_progress"] * 20)
    bar = f"[green]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/green]"
    console.print(f"\n  Level progress: {bar}\n")
    console.print(f"  Quizzes: [bold]{stats['quizzes_completed']}[/bold]  |  "
                  f"Score: [bold]{stats['total_score']}[/bold]  |  "
                  f"Streak: [bold]{stats['streak']} days[/bold]  |  "
                  f"Achievements: [bold]{stats['achievements_unlocked']}/{stats['achievements_total']}[/bold]")
    recent = get_recent_achievements(progress)
    if recent:
        console.print("\n[bold]Recent Achievements:[/bold]")
        for a in recent:
            console.print(f"  [yellow]★[/yellow] {a.title}")
    else:
        console.print("\n[dim]No achievements yet. Complete a quiz to earn your first![/dim]")
    console.print(f"\n  Favorite categories: {get_favorite_categories_text(progress)}")
    console.print(f"  Preferred difficulty: {progress.preferred_difficulty.value}")


def cmd_achievements(store: ProgressStore):
    which = Prompt.ask("Show", choices=list(ACHIEVEMENT_FILTERS), default="all")
    achievements = filter_achievements(store.progress.achievements, which)
    table = Table(title="Achievements")
    table.add_column("Achievement", style="cyan")
    table.add_column("Description")
    table.add_column("Progress", justify="right")
    table.add_column("Status")
    for a in achievements:
        status = (f"[green]Unlocked {a.unlocked_date:%b %d}[/green]"
                  if a.is_unlocked and a.unlocked_date else "[dim]Locked[/dim]")
        table.add_row(
            a.title, a.description,
            f"{min(a.progress, a.requirement)}/{a.requirement} ({a.progress_percentage:.0%})", status,
        )
    console.print(table)


def main():
    logging.basicConfig(
        level=os.getenv("QUIZZONE_LOG_LEVEL", "WARNING").upper(),
        format="[%(asctime)s] %(levelname)s - %(message)s",
    )
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    catalog = load_catalog()
    store = ProgressStore(db_path, catalog)
    session = QuizSession(store)

    show_welcome()
    if not store.progress.onboarding_completed:
        run_onboarding(store)

    try:
        while True:
            show_menu()
            choice = Prompt.ask("\n[bold]>[/bold]", default="play").strip().lower()
            try:
                if choice == "play":
                    cmd_play(session, catalog, store)
                elif choice == "quizzes":
                    cmd_quizzes(store)
                elif choice == "tips":
                    cmd_tips(catalog)
                elif choice == "profile":
                    cmd_profile(store)
                elif choice == "achievements":
                    cmd_achievements(store)
                elif choice in ("quit", "exit", "q"):
                    console.print("[dim]See you next time![/dim]")
                    break
                else:
                    console.print("[red]Unknown command. Try again.[/red]")
            except KeyboardInterrupt:
                session.reset_quiz()
                console.print("\n[dim]Use 'quit' to exit.[/dim]")
            except Exception as e:
                console.print(f"[red]Error: {e}[/red]")
    finally:
        session.dispose()


if __name__ == "__main__":
    main()
