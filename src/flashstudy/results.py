"""Session summaries and result persistence."""
import logging
import math
import sqlite3
import uuid
from datetime import datetime

from flashstudy.db import get_connection
from flashstudy.models import SessionResult, SessionSummary

logger = logging.getLogger(__name__)


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def summarize(results: list[SessionResult]) -> SessionSummary:
    """Summary statistics for a result log. An empty log gives all zeros."""
    total = len(results)
    if total == 0:
        return SessionSummary(
            total_cards=0, correct_count=0, accuracy=0,
            average_seconds=0, average_rating=0.0, total_seconds=0,
        )
    correct = sum(1 for r in results if r.is_correct)
    seconds = sum(r.time_spent_seconds for r in results)
    ratings = sum(r.difficulty_rating for r in results)
    return SessionSummary(
        total_cards=total,
        correct_count=correct,
        accuracy=int(_round_half_up(correct / total * 100)),
        average_seconds=int(_round_half_up(seconds / total)),
        average_rating=_round_half_up(ratings / total, 1),
        total_seconds=seconds,
    )


def needs_review_count(summary: SessionSummary) -> int:
    return summary.total_cards - summary.correct_count


def get_performance_label(accuracy: float) -> str:
    if accuracy >= 90:
        return "Excellent work!"
    elif accuracy >= 75:
        return "Great job!"
    elif accuracy >= 60:
        return "Good effort!"
    return "Keep practicing!"


def get_performance_color(accuracy: float) -> str:
    if accuracy >= 90:
        return "green"
    elif accuracy >= 75:
        return "blue"
    elif accuracy >= 60:
        return "yellow"
    return "dark_orange"


def format_duration(seconds: int) -> str:
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins}:{secs:02d}"


def persist_results(
    db_path: str,
    user_id: str,
    deck_id: int,
    results: list[SessionResult],
    session_id: str | None = None,
) -> bool:
    """Store one study_sessions row per result as a single batch.

    Failures are logged and reported as False; they never raise, so the
    summary can always be shown.
    """
    if not results:
        return True
    session_id = session_id or uuid.uuid4().hex
    created_at = datetime.now().isoformat()
    rows = [
        (session_id, user_id, deck_id, r.flashcard_id, r.difficulty_rating,
         r.time_spent_seconds, int(r.is_correct), created_at)
        for r in results
    ]
    try:
        conn = get_connection(db_path)
        try:
            with conn:
                conn.executemany(
                    """INSERT INTO study_sessions
                    (session_id, user_id, deck_id, flashcard_id, difficulty_rating,
                     time_spent_seconds, is_correct, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    rows,
                )
        finally:
            conn.close()
    except sqlite3.Error:
        logger.exception("Error saving session %s for deck %s", session_id, deck_id)
        return False
    logger.info("Saved %d results for session %s", len(rows), session_id)
    return True
