"""Study analytics built from persisted session results."""
from datetime import date, datetime, timedelta

from flashstudy.db import get_connection

_SESSIONS_SQL = """SELECT s.session_id, s.deck_id, MIN(s.created_at) as created_at,
    COUNT(*) as cards, SUM(s.is_correct) as correct,
    SUM(s.time_spent_seconds) as seconds
FROM study_sessions s
WHERE s.user_id = ? AND s.created_at >= ?
GROUP BY s.session_id
ORDER BY created_at ASC"""


def _since(days: int | None, today: date | None = None) -> str:
    if days is None:
        return ""
    start = (today or date.today()) - timedelta(days=days)
    return datetime.combine(start, datetime.min.time()).isoformat()


def _session_rows(db_path: str, user_id: str, days: int | None = None, today: date | None = None) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute(_SESSIONS_SQL, (user_id, _since(days, today))).fetchall()
    conn.close()
    sessions = []
    for r in rows:
        s = dict(r)
        s["accuracy"] = round(s["correct"] / s["cards"] * 100, 1)
        s["date"] = s["created_at"][:10]
        sessions.append(s)
    return sessions


def _mean_accuracy(sessions: list[dict]) -> float:
    if not sessions:
        return 0.0
    return round(sum(s["accuracy"] for s in sessions) / len(sessions), 1)


def get_study_stats(db_path: str, user_id: str, days: int | None = None) -> dict:
    sessions = _session_rows(db_path, user_id, days)
    conn = get_connection(db_path)
    decks = conn.execute("SELECT COUNT(*) FROM decks WHERE user_id = ?", (user_id,)).fetchone()[0]
    cards = conn.execute(
        "SELECT COUNT(*) FROM flashcards f JOIN decks d ON f.deck_id = d.id WHERE d.user_id = ?",
        (user_id,),
    ).fetchone()[0]
    conn.close()
    return {
        "total_sessions": len(sessions),
        "cards_studied": sum(s["cards"] for s in sessions),
        "total_time_minutes": round(sum(s["seconds"] for s in sessions) / 60, 1),
        "average_accuracy": _mean_accuracy(sessions),
        "total_decks": decks,
        "total_cards": cards,
    }


def get_deck_performance(db_path: str, user_id: str, days: int | None = None) -> list[dict]:
    """Per-deck session count, mean accuracy and time, for decks studied in the range."""
    sessions = _session_rows(db_path, user_id, days)
    conn = get_connection(db_path)
    decks = conn.execute(
        "SELECT id, title FROM decks WHERE user_id = ? ORDER BY title", (user_id,)
    ).fetchall()
    conn.close()
    results = []
    for d in decks:
        deck_sessions = [s for s in sessions if s["deck_id"] == d["id"]]
        if not deck_sessions:
            continue
        results.append({
            "deck_id": d["id"],
            "name": d["title"],
            "sessions": len(deck_sessions),
            "accuracy": _mean_accuracy(deck_sessions),
            "total_time_minutes": round(sum(s["seconds"] for s in deck_sessions) / 60, 1),
        })
    return results


def get_daily_activity(db_path: str, user_id: str, days: int = 7, today: date | None = None) -> list[dict]:
    today = today or date.today()
    sessions = _session_rows(db_path, user_id, days, today)
    activity = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        day_sessions = [s for s in sessions if s["date"] == day.isoformat()]
        activity.append({
            "date": day.isoformat(),
            "day": day.strftime("%a"),
            "sessions": len(day_sessions),
            "accuracy": _mean_accuracy(day_sessions),
            "time_minutes": round(sum(s["seconds"] for s in day_sessions) / 60, 1),
        })
    return activity


def get_accuracy_trend(db_path: str, user_id: str, limit: int = 10) -> list[dict]:
    sessions = _session_rows(db_path, user_id)[-limit:]
    return [
        {"session": f"Session {i}", "accuracy": s["accuracy"], "date": s["date"]}
        for i, s in enumerate(sessions, 1)
    ]


def get_difficulty_breakdown(db_path: str, user_id: str) -> dict[int, int]:
    """Number of the user's cards at each difficulty level 1-5."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT f.difficulty_level as level, COUNT(*) as n
        FROM flashcards f JOIN decks d ON f.deck_id = d.id
        WHERE d.user_id = ?
        GROUP BY f.difficulty_level""",
        (user_id,),
    ).fetchall()
    conn.close()
    breakdown = {level: 0 for level in range(1, 6)}
    for r in rows:
        breakdown[r["level"]] = r["n"]
    return breakdown


def get_current_streak(db_path: str, user_id: str, today: date | None = None) -> int:
    """Consecutive days with at least one session, ending today or yesterday."""
    today = today or date.today()
    studied = {date.fromisoformat(s["date"]) for s in _session_rows(db_path, user_id)}
    day = today if today in studied else today - timedelta(days=1)
    streak = 0
    while day in studied:
        streak += 1
        day -= timedelta(days=1)
    return streak


def get_achievements(stats: dict, streak: int) -> list[dict]:
    return [
        {"title": "Study Streak", "description": f"{streak} days in a row", "earned": streak > 0},
        {"title": "Quick Learner", "description": "Completed 10 sessions", "earned": stats["total_sessions"] >= 10},
        {"title": "Accuracy Master", "description": "90%+ average accuracy", "earned": stats["average_accuracy"] >= 90},
        {"title": "Time Scholar", "description": "5+ hours studied", "earned": stats["total_time_minutes"] >= 300},
    ]
