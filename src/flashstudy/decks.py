"""Deck and card storage."""
from datetime import datetime

from flashstudy.db import get_connection
from flashstudy.errors import DeckNotFoundError
from flashstudy.models import Card, Deck

GENERATED_DIFFICULTY_LEVELS = {"easy": 1, "medium": 3, "hard": 5}


def _card_from_row(row) -> Card:
    return Card(
        id=row["id"],
        deck_id=row["deck_id"],
        front_text=row["front_text"],
        back_text=row["back_text"],
        front_image_url=row["front_image_url"],
        back_image_url=row["back_image_url"],
        difficulty_level=row["difficulty_level"],
    )


def _deck_from_row(row, cards=()) -> Deck:
    return Deck(
        id=row["id"],
        title=row["title"],
        user_id=row["user_id"],
        description=row["description"],
        subject=row["subject"],
        is_public=bool(row["is_public"]),
        cards=tuple(cards),
    )


def create_deck(
    db_path: str,
    user_id: str,
    title: str,
    description: str | None = None,
    subject: str | None = None,
    is_public: bool = False,
) -> int:
    if not title.strip():
        raise ValueError("Deck title is required")
    conn = get_connection(db_path)
    cur = conn.execute(
        "INSERT INTO decks (user_id, title, description, subject, is_public, created_at) VALUES (?, ?, ?, ?, ?, ?)",
        (user_id, title.strip(), description or None, subject or None, int(is_public), datetime.now().isoformat()),
    )
    conn.commit()
    deck_id = cur.lastrowid
    conn.close()
    return deck_id


def list_decks(db_path: str, user_id: str) -> list[dict]:
    """The user's decks with their card counts, newest first."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT d.*, COUNT(f.id) as card_count
        FROM decks d
        LEFT JOIN flashcards f ON f.deck_id = d.id
        WHERE d.user_id = ?
        GROUP BY d.id
        ORDER BY d.created_at DESC, d.id DESC""",
        (user_id,),
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]


def get_deck(db_path: str, deck_id: int) -> dict | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM decks WHERE id = ?", (deck_id,)).fetchone()
    conn.close()
    return dict(row) if row else None


def add_card(
    db_path: str,
    deck_id: int,
    front_text: str,
    back_text: str,
    difficulty_level: int = 1,
    front_image_url: str | None = None,
    back_image_url: str | None = None,
) -> int:
    if not front_text.strip() or not back_text.strip():
        raise ValueError("Both the front and back of a card are required")
    if not 1 <= difficulty_level <= 5:
        raise ValueError(f"Difficulty level must be 1-5, got {difficulty_level}")
    conn = get_connection(db_path)
    cur = conn.execute(
        """INSERT INTO flashcards
        (deck_id, front_text, back_text, front_image_url, back_image_url, difficulty_level, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (deck_id, front_text.strip(), back_text.strip(), front_image_url or None,
         back_image_url or None, difficulty_level, datetime.now().isoformat()),
    )
    conn.commit()
    card_id = cur.lastrowid
    conn.close()
    return card_id


def get_cards(db_path: str, deck_id: int) -> list[Card]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM flashcards WHERE deck_id = ? ORDER BY created_at DESC, id DESC", (deck_id,)
    ).fetchall()
    conn.close()
    return [_card_from_row(r) for r in rows]


def count_cards(db_path: str, deck_id: int) -> int:
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM flashcards WHERE deck_id = ?", (deck_id,)).fetchone()[0]
    conn.close()
    return count


def load_deck(db_path: str, deck_id: int, user_id: str | None = None) -> Deck:
    """Load a deck with its cards.

    When ``user_id`` is given, private decks owned by someone else are
    treated as missing.
    """
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM decks WHERE id = ?", (deck_id,)).fetchone()
    conn.close()
    if row is None:
        raise DeckNotFoundError(f"Deck {deck_id} not found")
    if user_id is not None and row["user_id"] != user_id and not row["is_public"]:
        raise DeckNotFoundError(f"Deck {deck_id} not found")
    return _deck_from_row(row, get_cards(db_path, deck_id))


def add_generated_cards(db_path: str, deck_id: int, cards) -> list[int]:
    """Add generated flashcards (objects with front, back, difficulty) to a deck."""
    return [
        add_card(
            db_path, deck_id, card.front, card.back,
            difficulty_level=GENERATED_DIFFICULTY_LEVELS.get(card.difficulty, 1),
        )
        for card in cards
    ]
