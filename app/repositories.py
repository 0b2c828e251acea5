"""Repository layer encapsulating raw database interactions."""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple
import sqlite3

from .db import DatabaseManager
from .time_utils import to_iso, utc_now

_DECK_WITH_COUNT = """
    SELECT
        d.public_id AS public_id,
        d.user_id AS user_id,
        d.name AS name,
        d.description AS description,
        d.created_at AS created_at,
        d.updated_at AS updated_at,
        COUNT(c.id) AS card_count
    FROM decks d
    LEFT JOIN cards c ON c.deck_id = d.public_id
"""


class UserRepository:
    """Persistence layer for user accounts and their billing plan."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def _fetch_one(self, query: str, params: tuple) -> Optional[sqlite3.Row]:
        with self._db.connect() as connection:
            return connection.execute(query, params).fetchone()

    def find_by_google_id(self, google_id: Optional[str]) -> Optional[sqlite3.Row]:
        if not google_id:
            return None
        return self._fetch_one("SELECT * FROM users WHERE google_id=?", (google_id,))

    def find_by_email(self, email: Optional[str]) -> Optional[sqlite3.Row]:
        if not email:
            return None
        return self._fetch_one("SELECT * FROM users WHERE email=?", (email,))

    def find_by_public_id(self, public_id: str) -> Optional[sqlite3.Row]:
        return self._fetch_one("SELECT * FROM users WHERE public_id=?", (public_id,))

    def create(
        self,
        *,
        public_id: str,
        email: str,
        name: Optional[str],
        google_id: Optional[str],
        created_at: str,
        plan: str = "free",
    ) -> sqlite3.Row:
        with self._db.connect() as connection:
            cursor = connection.execute(
                """
                INSERT INTO users(public_id, email, name, google_id, plan, created_at)
                VALUES(?, ?, ?, ?, ?, ?)
                """,
                (public_id, email, name, google_id, plan, created_at),
            )
            return connection.execute("SELECT * FROM users WHERE id=?", (cursor.lastrowid,)).fetchone()

    def update_google_id(self, user_id: int, google_id: str) -> sqlite3.Row:
        with self._db.connect() as connection:
            connection.execute("UPDATE users SET google_id=? WHERE id=?", (google_id, user_id))
            return connection.execute("SELECT * FROM users WHERE id=?", (user_id,)).fetchone()

    def update_name(self, public_id: str, name: Optional[str]) -> Optional[sqlite3.Row]:
        with self._db.connect() as connection:
            connection.execute("UPDATE users SET name=? WHERE public_id=?", (name, public_id))
            return connection.execute("SELECT * FROM users WHERE public_id=?", (public_id,)).fetchone()

    def set_plan(self, public_id: str, plan: str) -> int:
        with self._db.connect() as connection:
            cursor = connection.execute("UPDATE users SET plan=? WHERE public_id=?", (plan, public_id))
        return cursor.rowcount


class AuthRepository:
    """Persistence layer for the JWT revocation list."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def revoke_token(self, token: str) -> None:
        revoked_at = to_iso(utc_now())
        with self._db.connect() as connection:
            connection.execute(
                "INSERT OR IGNORE INTO revoked_tokens(token, revoked_at) VALUES(?, ?)",
                (token, revoked_at),
            )

    def is_token_revoked(self, token: str) -> bool:
        with self._db.connect() as connection:
            row = connection.execute(
                "SELECT 1 FROM revoked_tokens WHERE token=?", (token,)
            ).fetchone()
        return row is not None


class DeckRepository:
    """Persistence layer responsible for deck CRUD operations scoped to an owner."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def find_owned(
        self, public_id: str, user_id: str, *, conn: Optional[sqlite3.Connection] = None
    ) -> Optional[sqlite3.Row]:
        query = _DECK_WITH_COUNT + " WHERE d.public_id=? AND d.user_id=? GROUP BY d.id"
        if conn is None:
            with self._db.connect() as connection:
                return connection.execute(query, (public_id, user_id)).fetchone()
        return conn.execute(query, (public_id, user_id)).fetchone()

    def count_by_user(self, user_id: str) -> int:
        with self._db.connect() as connection:
            row = connection.execute(
                "SELECT COUNT(*) FROM decks WHERE user_id=?", (user_id,)
            ).fetchone()
        return int(row[0])

    def insert(
        self,
        *,
        public_id: str,
        user_id: str,
        name: str,
        description: Optional[str],
        created_at: str,
    ) -> sqlite3.Row:
        with self._db.connect() as connection:
            connection.execute(
                """
                INSERT INTO decks(public_id, user_id, name, description, created_at, updated_at)
                VALUES(?, ?, ?, ?, ?, ?)
                """,
                (public_id, user_id, name, description, created_at, created_at),
            )
            return self.find_owned(public_id, user_id, conn=connection)

    def list_with_counts(self, user_id: str) -> List[sqlite3.Row]:
        """Return the user's decks alongside card counts, newest first."""
        query = _DECK_WITH_COUNT + " WHERE d.user_id=? GROUP BY d.id ORDER BY d.created_at DESC, d.id DESC"
        with self._db.connect() as connection:
            return connection.execute(query, (user_id,)).fetchall()

    def update(
        self,
        public_id: str,
        user_id: str,
        *,
        name: Optional[str],
        description: Optional[str],
        update_description: bool,
        updated_at: str,
    ) -> Optional[sqlite3.Row]:
        assignments = ["updated_at=?"]
        params: list = [updated_at]
        if name is not None:
            assignments.append("name=?")
            params.append(name)
        if update_description:
            assignments.append("description=?")
            params.append(description)
        params.extend([public_id, user_id])
        with self._db.connect() as connection:
            cursor = connection.execute(
                f"UPDATE decks SET {', '.join(assignments)} WHERE public_id=? AND user_id=?",
                params,
            )
            if cursor.rowcount == 0:
                return None
            return self.find_owned(public_id, user_id, conn=connection)

    def delete_owned(self, public_id: str, user_id: str) -> int:
        with self._db.connect() as connection:
            cursor = connection.execute(
                "DELETE FROM decks WHERE public_id=? AND user_id=?", (public_id, user_id)
            )
        return cursor.rowcount


class CardRepository:
    """Persistence layer responsible for card CRUD operations."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def insert(
        self,
        *,
        public_id: str,
        deck_id: str,
        front: str,
        back: str,
        created_at: str,
    ) -> sqlite3.Row:
        with self._db.connect() as connection:
            cursor = connection.execute(
                """
                INSERT INTO cards(public_id, deck_id, front, back, created_at, updated_at)
                VALUES(?, ?, ?, ?, ?, ?)
                """,
                (public_id, deck_id, front, back, created_at, created_at),
            )
            return connection.execute("SELECT * FROM cards WHERE id=?", (cursor.lastrowid,)).fetchone()

    def insert_many(
        self, deck_id: str, cards: Iterable[Tuple[str, str, str]], created_at: str
    ) -> List[sqlite3.Row]:
        """Insert (public_id, front, back) tuples in a single transaction."""
        rows = [
            (public_id, deck_id, front, back, created_at, created_at)
            for public_id, front, back in cards
        ]
        if not rows:
            return []
        with self._db.connect() as connection:
            connection.executemany(
                """
                INSERT INTO cards(public_id, deck_id, front, back, created_at, updated_at)
                VALUES(?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
            placeholders = ",".join("?" for _ in rows)
            return connection.execute(
                f"SELECT * FROM cards WHERE public_id IN ({placeholders}) ORDER BY id",
                [row[0] for row in rows],
            ).fetchall()

    def list_by_deck(self, deck_id: str) -> List[sqlite3.Row]:
        with self._db.connect() as connection:
            return connection.execute(
                "SELECT * FROM cards WHERE deck_id=? ORDER BY updated_at DESC, id DESC",
                (deck_id,),
            ).fetchall()

    def fetch_owned(self, public_id: str, user_id: str) -> Optional[sqlite3.Row]:
        """Return a card only when its deck belongs to the given user."""
        with self._db.connect() as connection:
            return connection.execute(
                """
                SELECT c.* FROM cards c
                JOIN decks d ON d.public_id = c.deck_id
                WHERE c.public_id=? AND d.user_id=?
                """,
                (public_id, user_id),
            ).fetchone()

    def update(self, public_id: str, *, front: str, back: str, updated_at: str) -> sqlite3.Row:
        with self._db.connect() as connection:
            connection.execute(
                "UPDATE cards SET front=?, back=?, updated_at=? WHERE public_id=?",
                (front, back, updated_at, public_id),
            )
            return connection.execute("SELECT * FROM cards WHERE public_id=?", (public_id,)).fetchone()

    def delete_by_public_id(self, public_id: str) -> int:
        with self._db.connect() as connection:
            cursor = connection.execute("DELETE FROM cards WHERE public_id=?", (public_id,))
        return cursor.rowcount
