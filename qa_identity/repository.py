"""Database repositories for user identity and profile content."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from psycopg.errors import UniqueViolation
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.account import Account, QuestionSummary, UserSummary
from .domain.contracts import AccountDraft
from .domain.errors import ConflictError

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    user_id TEXT PRIMARY KEY,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    username TEXT NOT NULL,
    username_normalized TEXT NOT NULL,
    email TEXT NOT NULL,
    country TEXT NOT NULL,
    contact_number TEXT NOT NULL,
    gender TEXT NOT NULL,
    institution_type TEXT NOT NULL,
    institution_name TEXT NOT NULL,
    department TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'user',
    password_hash TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    CONSTRAINT users_username_normalized_key UNIQUE (username_normalized)
);

CREATE TABLE IF NOT EXISTS questions (
    question_id TEXT PRIMARY KEY,
    author_id TEXT NOT NULL REFERENCES users (user_id),
    title TEXT NOT NULL,
    points INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL
);

CREATE INDEX IF NOT EXISTS questions_author_created_idx
    ON questions (author_id, created_at DESC);

CREATE TABLE IF NOT EXISTS answers (
    answer_id TEXT PRIMARY KEY,
    question_id TEXT NOT NULL REFERENCES questions (question_id),
    author_id TEXT NOT NULL REFERENCES users (user_id),
    created_at TIMESTAMPTZ NOT NULL
);

CREATE INDEX IF NOT EXISTS answers_author_idx ON answers (author_id);
"""

_ACCOUNT_COLUMNS = """
    user_id, first_name, last_name, username, email, country, contact_number,
    gender, institution_type, institution_name, department, role,
    password_hash, created_at
"""


def normalize_username(username: str) -> str:
    """Return the case-folded form used for uniqueness and lookups."""
    return username.lower()


def ensure_schema(pool: ConnectionPool) -> None:
    """Create the identity tables when they do not exist yet."""
    with pool.connection() as conn:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
            conn.commit()


class UserRepository:
    """Postgres-backed account directory with case-insensitive usernames."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def find_by_username(self, username: str) -> Account | None:
        """Fetch the account whose username matches ignoring case, or ``None``."""
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_ACCOUNT_COLUMNS}
                    FROM users
                    WHERE username_normalized = %s
                    """,
                    (normalize_username(username),),
                )
                row = cur.fetchone()
                if not row:
                    return None

                cur.execute(
                    """
                    SELECT question_id
                    FROM questions
                    WHERE author_id = %s
                    ORDER BY created_at ASC, question_id ASC
                    """,
                    (row[0],),
                )
                questions = [question_id for (question_id,) in cur.fetchall()]

                cur.execute(
                    """
                    SELECT answer_id
                    FROM answers
                    WHERE author_id = %s
                    ORDER BY created_at ASC, answer_id ASC
                    """,
                    (row[0],),
                )
                answers = [answer_id for (answer_id,) in cur.fetchall()]

        return self._map_record(row, questions, answers)

    def exists(self, username: str) -> bool:
        """Return ``True`` when a username is taken under case-insensitive comparison."""
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    "SELECT 1 FROM users WHERE username_normalized = %s",
                    (normalize_username(username),),
                )
                return cur.fetchone() is not None

    def insert(self, draft: AccountDraft) -> Account:
        """Persist a new account; the unique index arbitrates concurrent registrations."""
        user_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO users (
                            user_id, first_name, last_name, username, username_normalized,
                            email, country, contact_number, gender, institution_type,
                            institution_name, department, password_hash, created_at
                        )
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                        RETURNING {_ACCOUNT_COLUMNS}
                        """,
                        (
                            user_id,
                            draft.first_name,
                            draft.last_name,
                            draft.username,
                            normalize_username(draft.username),
                            draft.email,
                            draft.country,
                            draft.contact_number,
                            draft.gender,
                            draft.institution_type,
                            draft.institution_name,
                            draft.department,
                            draft.password_hash,
                            now,
                        ),
                    )
                    record = cur.fetchone()
                    conn.commit()
        except UniqueViolation as exc:
            logger.info("username %r lost a concurrent registration race", draft.username)
            raise ConflictError(f"Username '{draft.username}' is already taken.") from exc

        return self._map_record(record, [], [])

    def list_summaries(self) -> list[UserSummary]:
        """Return every account projected to username, department and creation time."""
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    SELECT username, department, created_at
                    FROM users
                    ORDER BY created_at ASC, user_id ASC
                    """
                )
                return [
                    UserSummary(username=row[0], department=row[1], created_at=row[2])
                    for row in cur.fetchall()
                ]

    def _map_record(self, row: tuple, questions: list[str], answers: list[str]) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            user_id=row[0],
            first_name=row[1],
            last_name=row[2],
            username=row[3],
            email=row[4],
            country=row[5],
            contact_number=row[6],
            gender=row[7],
            institution_type=row[8],
            institution_name=row[9],
            department=row[10],
            role=row[11],
            password_hash=row[12],
            created_at=row[13],
            questions=questions,
            answers=answers,
        )


class QuestionRepository:
    """Read-only access to the questions a user wrote or answered."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def recent_authored(self, account_id: str, limit: int = 5) -> list[QuestionSummary]:
        """Return the newest questions authored by the account."""
        return self._fetch(
            """
            SELECT q.question_id, q.title, q.points, q.created_at
            FROM questions AS q
            WHERE q.author_id = %s
            ORDER BY q.created_at DESC, q.question_id DESC
            LIMIT %s
            """,
            (account_id, limit),
        )

    def recent_answered(self, account_id: str, limit: int = 5) -> list[QuestionSummary]:
        """Return the newest questions carrying at least one answer by the account.

        A question answered several times by the same user is listed once.
        """
        return self._fetch(
            """
            SELECT q.question_id, q.title, q.points, q.created_at
            FROM questions AS q
            WHERE EXISTS (
                SELECT 1 FROM answers AS a
                WHERE a.question_id = q.question_id AND a.author_id = %s
            )
            ORDER BY q.created_at DESC, q.question_id DESC
            LIMIT %s
            """,
            (account_id, limit),
        )

    def _fetch(self, query: str, params: tuple) -> list[QuestionSummary]:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(query, params)
                return [
                    QuestionSummary(
                        question_id=row[0],
                        title=row[1],
                        points=row[2],
                        created_at=row[3],
                    )
                    for row in cur.fetchall()
                ]
