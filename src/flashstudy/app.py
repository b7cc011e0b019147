"""Interactive CLI application."""
import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from flashstudy.analytics import (
    get_accuracy_trend, get_achievements, get_current_streak, get_daily_activity,
    get_deck_performance, get_difficulty_breakdown, get_study_stats,
)
from flashstudy.config import load_config
from flashstudy.controller import StudySession
from flashstudy.db import get_setting, init_db, set_setting
from flashstudy.decks import (
    add_card, add_generated_cards, count_cards, create_deck, list_decks, load_deck,
)
from flashstudy.errors import FlashstudyError
from flashstudy.generation import GenerationClient
from flashstudy.models import STUDY_MODES
from flashstudy.modes import MODE_LABELS, QuizRound, estimate_minutes
from flashstudy.results import (
    format_duration, get_performance_color, get_performance_label, needs_review_count,
)
from flashstudy.session import IN_PROGRESS

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")
RATING_LABELS = {1: "Again", 2: "Hard", 3: "Good", 4: "Easy", 5: "Perfect"}


class SessionExitRequested(Exception):
    """Raised when the user asks to leave a study session."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str]) -> int:
    answer = session_prompt(prompt, choices=choices + list(EXIT_WORDS), show_choices=False)
    return int(answer)


def configure_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def show_welcome():
    console.print(Panel(
        "[bold]flashstudy[/bold]\n[dim]Flashcards, quizzes and study analytics[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu(generation_enabled: bool = False):
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("decks", "List your decks"),
        ("new", "Create a deck"),
        ("add", "Add a card to a deck"),
        ("study", "Study a deck"),
        ("analytics", "Study statistics"),
    ]
    if generation_enabled:
        commands += [
            ("generate", "Generate cards from notes"),
            ("quiz-gen", "Generate a practice quiz for a deck"),
            ("guide", "Generate a study guide"),
            ("plan", "Adaptive study plan for a deck"),
            ("tips", "Personalized study recommendations"),
            ("explain", "Explain a concept"),
        ]
    commands.append(("quit", "Exit"))
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def run_flashcard_card(round_, number: int, total: int) -> None:
    card = round_.card
    label = "Adaptive Learning Mode" if round_.adaptive else "Review Mode"
    console.print(Panel(
        card.front_text,
        title=f"Card {number}/{total}",
        subtitle=f"{label} • Difficulty {card.difficulty_level}",
        border_style="cyan",
    ))
    session_prompt("[dim]Press Enter to reveal answer (q to exit)[/dim]", default="", show_default=False)
    round_.reveal()
    console.print(Panel(card.back_text, border_style="green"))
    legend = ", ".join(f"{n}={name}" for n, name in RATING_LABELS.items())
    rating = session_int_prompt(f"How well did you know this? ({legend})", choices=["1", "2", "3", "4", "5"])
    round_.rate(rating)
    console.print()


def run_quiz_card(round_: QuizRound, number: int, total: int) -> None:
    card = round_.card
    letters = [chr(ord("a") + i) for i in range(len(round_.options))]
    console.print(Panel(
        card.front_text,
        title=f"Question {number}/{total}",
        subtitle=f"Quiz Mode • Difficulty {card.difficulty_level} • {round_.seconds_left()}s",
        border_style="cyan",
    ))
    for letter, option in zip(letters, round_.options):
        console.print(f"  [cyan]{letter})[/cyan] {option}")
    answer = session_prompt(
        f"\nYour answer [dim](answer within {round_.seconds_left()}s)[/dim]",
        choices=letters + list(EXIT_WORDS), show_choices=False,
    )
    selected = round_.options[letters.index(answer.strip().lower())]
    if not round_.submit(selected):
        console.print("[red]Time's up![/red]", end=" ")
    elif round_.is_correct:
        console.print(f"[green]Correct![/green] Great job! [dim]({round_.seconds_left()}s left)[/dim]\n")
        return
    else:
        console.print("[red]Incorrect.[/red]", end=" ")
    console.print(f"The correct answer was: [green]{round_.correct_answer}[/green]\n")


def show_results(session: StudySession) -> None:
    summary = session.summary
    color = get_performance_color(summary.accuracy)
    console.print(Panel(
        f"[bold]Study Session Complete![/bold]\nYou've finished studying \"{session.deck.title}\"\n"
        f"[{color}]{get_performance_label(summary.accuracy)}[/{color}]",
        border_style=color,
    ))
    table = Table(title="Session Summary")
    table.add_column("Accuracy", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Avg / card", justify="right")
    table.add_column("Cards", justify="right")
    table.add_column("Avg Rating", justify="right")
    table.add_column("Correct", justify="right")
    table.add_column("Need Review", justify="right")
    table.add_row(
        f"[{color}]{summary.accuracy}%[/{color}]",
        format_duration(session.session_elapsed_seconds),
        f"{summary.average_seconds}s",
        str(summary.total_cards),
        str(summary.average_rating),
        str(summary.correct_count),
        str(needs_review_count(summary)),
    )
    console.print(table)
    if session.saved is False:
        logger.warning("Session results could not be saved")
    if summary.accuracy < 75:
        console.print("\n[yellow]Study tip:[/yellow] review the cards you missed, "
                      "or try adaptive mode for a slower pass.")


def run_study_session(session: StudySession, mode: str) -> None:
    """Drive a session from mode selection to the results view."""
    session.start(mode)
    try:
        while session.status == IN_PROGRESS:
            # The countdown for a quiz card starts here, once it is on screen.
            round_ = session.present_current()
            number = session.progress[0] + 1
            total = session.progress[1]
            if isinstance(round_, QuizRound):
                run_quiz_card(round_, number, total)
            else:
                run_flashcard_card(round_, number, total)
    except SessionExitRequested:
        session.exit()
        raise
    show_results(session)


def choose_deck(db_path: str, user_id: str) -> int | None:
    decks = list_decks(db_path, user_id)
    if not decks:
        console.print("[yellow]You don't have any decks yet. Use 'new' to create one.[/yellow]")
        return None
    for d in decks:
        console.print(f"  [cyan]{d['id']}[/cyan]) {d['title']} [dim]({d['card_count']} cards)[/dim]")
    return IntPrompt.ask("Select deck", choices=[str(d["id"]) for d in decks])


def choose_mode(db_path: str, card_count: int) -> str:
    for mode in STUDY_MODES:
        console.print(f"  [cyan]{mode:<10}[/cyan] {MODE_LABELS[mode]} "
                      f"[dim]~{estimate_minutes(mode, card_count)} min[/dim]")
    default = get_setting(db_path, "last_study_mode", "flashcard")
    mode = Prompt.ask("Study mode", choices=list(STUDY_MODES), default=default)
    set_setting(db_path, "last_study_mode", mode)
    return mode


def cmd_decks(config):
    decks = list_decks(config.db_path, config.user_id)
    if not decks:
        console.print("[yellow]No decks yet.[/yellow]")
        return
    table = Table(title="Your Decks")
    table.add_column("ID", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("Subject")
    table.add_column("Cards", justify="right")
    table.add_column("Public")
    for d in decks:
        table.add_row(str(d["id"]), d["title"], d["subject"] or "", str(d["card_count"]),
                      "yes" if d["is_public"] else "")
    console.print(table)


def cmd_new(config):
    title = Prompt.ask("Title")
    description = Prompt.ask("Description", default="")
    subject = Prompt.ask("Subject", default="")
    is_public = Confirm.ask("Make public?", default=False)
    deck_id = create_deck(config.db_path, config.user_id, title, description, subject, is_public)
    console.print(f"[green]Created deck {deck_id}.[/green]")


def cmd_add(config):
    deck_id = choose_deck(config.db_path, config.user_id)
    if deck_id is None:
        return
    front = Prompt.ask("Front")
    back = Prompt.ask("Back")
    level = IntPrompt.ask("Difficulty (1-5)", choices=["1", "2", "3", "4", "5"], default=1)
    add_card(config.db_path, deck_id, front, back, difficulty_level=level)
    console.print(f"[green]Card added.[/green] [dim]Cards in deck: {count_cards(config.db_path, deck_id)}[/dim]")


def cmd_study(config):
    deck_id = choose_deck(config.db_path, config.user_id)
    if deck_id is None:
        return
    deck = load_deck(config.db_path, deck_id, user_id=config.user_id)
    if not deck.cards:
        console.print("[yellow]No cards to study. This deck doesn't have any flashcards yet.[/yellow]")
        return
    session = StudySession(deck, user_id=config.user_id, db_path=config.db_path)
    console.print(Panel(
        f"[bold]Study: {deck.title}[/bold]\n{len(deck.cards)} cards"
        + (f" • {deck.subject}" if deck.subject else ""),
        border_style="blue",
    ))
    while True:
        mode = choose_mode(config.db_path, len(deck.cards))
        try:
            run_study_session(session, mode)
        except SessionExitRequested:
            console.print("[dim]Session ended.[/dim]")
            return
        if not Confirm.ask("Study again?", default=False):
            return
        session.reset()


def cmd_analytics(config):
    days = {"7d": 7, "30d": 30, "90d": 90}[
        Prompt.ask("Time range", choices=["7d", "30d", "90d"], default="7d")
    ]
    stats = get_study_stats(config.db_path, config.user_id, days=days)
    streak = get_current_streak(config.db_path, config.user_id)
    console.print(Panel(
        f"Sessions: [bold]{stats['total_sessions']}[/bold]  |  "
        f"Cards studied: [bold]{stats['cards_studied']}[/bold]  |  "
        f"Time: [bold]{stats['total_time_minutes']} min[/bold]  |  "
        f"Avg accuracy: [bold]{stats['average_accuracy']}%[/bold]  |  "
        f"Streak: [bold]{streak}[/bold] days",
        title="Study Analytics", border_style="blue",
    ))

    activity = Table(title="Last 7 Days")
    activity.add_column("Day")
    activity.add_column("Sessions", justify="right")
    activity.add_column("Accuracy", justify="right")
    activity.add_column("Minutes", justify="right")
    for day in get_daily_activity(config.db_path, config.user_id):
        activity.add_row(day["day"], str(day["sessions"]), f"{day['accuracy']}%", str(day["time_minutes"]))
    console.print(activity)

    trend = get_accuracy_trend(config.db_path, config.user_id)
    if trend:
        table = Table(title="Accuracy Trend")
        table.add_column("Session")
        table.add_column("Date")
        table.add_column("Accuracy", justify="right")
        for t in trend:
            color = get_performance_color(t["accuracy"])
            table.add_row(t["session"], t["date"], f"[{color}]{t['accuracy']}%[/{color}]")
        console.print(table)

    decks = get_deck_performance(config.db_path, config.user_id, days=days)
    if decks:
        table = Table(title="Deck Performance")
        table.add_column("Deck", style="cyan")
        table.add_column("Sessions", justify="right")
        table.add_column("Accuracy", justify="right")
        table.add_column("Minutes", justify="right")
        for d in decks:
            color = get_performance_color(d["accuracy"])
            table.add_row(d["name"], str(d["sessions"]), f"[{color}]{d['accuracy']}%[/{color}]",
                          str(d["total_time_minutes"]))
        console.print(table)

    breakdown = get_difficulty_breakdown(config.db_path, config.user_id)
    console.print("\n  Cards by difficulty: " + "  ".join(
        f"[cyan]{level}[/cyan]: {n}" for level, n in breakdown.items()
    ))
    for a in get_achievements(stats, streak):
        mark = "[green]✓[/green]" if a["earned"] else "[dim]·[/dim]"
        console.print(f"  {mark} {a['title']} [dim]{a['description']}[/dim]")


def cmd_generate(config):
    deck_id = choose_deck(config.db_path, config.user_id)
    if deck_id is None:
        return
    subject = Prompt.ask("Subject")
    content = Prompt.ask("Paste your notes")
    count = IntPrompt.ask("Number of cards", default=10)
    with GenerationClient.from_config(config) as client:
        with console.status("Generating flashcards..."):
            cards = client.generate_flashcards(content, subject, count=count)
    if not cards:
        console.print("[yellow]No cards were generated.[/yellow]")
        return
    table = Table(title="Generated Flashcards")
    table.add_column("Front")
    table.add_column("Back")
    table.add_column("Difficulty")
    for c in cards:
        table.add_row(c.front, c.back, c.difficulty)
    console.print(table)
    if Confirm.ask(f"Add {len(cards)} cards to the deck?", default=True):
        add_generated_cards(config.db_path, deck_id, cards)
        console.print(f"[green]Added {len(cards)} cards.[/green]")


def cmd_quiz_gen(config):
    deck_id = choose_deck(config.db_path, config.user_id)
    if deck_id is None:
        return
    count = IntPrompt.ask("Number of questions", default=5)
    difficulty = Prompt.ask("Difficulty", choices=["easy", "medium", "hard"], default="medium")
    with GenerationClient.from_config(config) as client:
        with console.status("Generating quiz..."):
            questions = client.generate_quiz(deck_id, question_count=count, difficulty=difficulty)
    if not questions:
        console.print("[yellow]No questions were generated.[/yellow]")
        return

    correct = 0
    for i, q in enumerate(questions, 1):
        console.print(Panel(q.question, title=f"Question {i}/{len(questions)}",
                            subtitle=f"{q.topic} • {q.difficulty}", border_style="cyan"))
        if q.options:
            letters = [chr(ord("a") + n) for n in range(len(q.options))]
            for letter, option in zip(letters, q.options):
                console.print(f"  [cyan]{letter})[/cyan] {option}")
            answer = Prompt.ask("Your answer", choices=letters, show_choices=False)
            given = q.options[letters.index(answer)]
        else:
            given = Prompt.ask("Your answer")
        if given.strip().lower() == q.correct_answer.strip().lower():
            correct += 1
            console.print("[green]Correct![/green]")
        else:
            console.print(f"[red]Incorrect.[/red] The correct answer was: [green]{q.correct_answer}[/green]")
        console.print(f"[dim]{q.explanation}[/dim]\n")
    console.print(f"[bold]Score: {correct}/{len(questions)}[/bold]")


def cmd_guide(config):
    deck_id = choose_deck(config.db_path, config.user_id)
    if deck_id is None:
        return
    topic = Prompt.ask("Topic")
    with GenerationClient.from_config(config) as client:
        with console.status("Writing study guide..."):
            guide = client.generate_study_guide(deck_id, topic)
    console.print(Panel(Markdown(guide), title=f"Study Guide: {topic}", border_style="green"))


def cmd_plan(config):
    deck_id = choose_deck(config.db_path, config.user_id)
    if deck_id is None:
        return
    with GenerationClient.from_config(config) as client:
        with console.status("Analyzing your study history..."):
            plan = client.adaptive_plan(deck_id)
    strategy = plan.overall_strategy
    dist = strategy.difficulty_distribution
    console.print(Panel(
        f"Focus areas: [bold]{', '.join(strategy.focus_areas) or '-'}[/bold]\n"
        f"Recommended session: [bold]{strategy.recommended_session_length:g} min[/bold]\n"
        f"Mix: easy {dist.easy:.0%} • medium {dist.medium:.0%} • hard {dist.hard:.0%}",
        title="Adaptive Study Plan", border_style="blue",
    ))
    if not plan.recommendations:
        return
    table = Table(title="Card Recommendations")
    table.add_column("Card", justify="right")
    table.add_column("Review in", justify="right")
    table.add_column("Difficulty")
    table.add_column("Why")
    table.add_column("Tip")
    for r in plan.recommendations:
        table.add_row(r.card_id, f"{r.next_review_hours:g}h", r.difficulty_adjustment,
                      r.focus_reason, r.study_tip)
    console.print(table)


def cmd_tips(config):
    with GenerationClient.from_config(config) as client:
        with console.status("Gathering recommendations..."):
            recs = client.get_recommendations()
    if not recs:
        console.print("[yellow]No recommendations yet. Study a few sessions first.[/yellow]")
        return
    colors = {"high": "red", "medium": "yellow", "low": "green"}
    for r in recs:
        color = colors[r.priority]
        console.print(f"  [{color}]{r.priority.upper():<6}[/{color}] [bold]{r.title}[/bold] "
                      f"[dim]({r.type.replace('_', ' ')})[/dim]\n         {r.description}")


def cmd_explain(config):
    concept = Prompt.ask("Concept")
    context = Prompt.ask("Context", default="")
    with GenerationClient.from_config(config) as client:
        with console.status("Thinking..."):
            text = client.explain_concept(concept, context or None)
    console.print(Panel(text, title=concept, border_style="green"))


COMMANDS = {
    "decks": cmd_decks,
    "new": cmd_new,
    "add": cmd_add,
    "study": cmd_study,
    "analytics": cmd_analytics,
    "generate": cmd_generate,
    "quiz-gen": cmd_quiz_gen,
    "guide": cmd_guide,
    "plan": cmd_plan,
    "tips": cmd_tips,
    "explain": cmd_explain,
}


def main():
    config = load_config()
    configure_logging(config.log_level)
    init_db(config.db_path)
    show_welcome()

    while True:
        show_menu(config.generation_enabled)
        choice = Prompt.ask("\n[bold]>[/bold]", default="study").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]Happy studying![/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(config)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except (FlashstudyError, ValueError) as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
