"""
adapters/postgres_db.py
──────────────────────────────────────────────────────────────────────────────
Implements AssessmentStorePort using psycopg2.

Database layout:
  Table : profiles
  Cols  : id (PK, uuid), first_name, last_name, email, phone, date_of_birth,
          nationality, education_level, current_occupation,
          years_of_experience, preferred_state, created_at, updated_at

  Table : visa_categories        (read-only reference catalog)
  Cols  : id (PK, uuid), visa_code, visa_name, points_required, description,
          processing_time, application_fee, ...

  Table : visa_assessments       (append-only history)
  Cols  : id (PK, uuid), user_id → profiles.id, assessment_score,
          recommended_visa_id → visa_categories.id, strengths text[],
          improvement_areas text[], detailed_analysis jsonb, is_premium,
          created_at

Connection management:
  - A single connection is opened lazily and reused.
  - On OperationalError the connection is reset and one retry is attempted.
  - For a multi-threaded server: replace with a psycopg2 connection pool
    (psycopg2.pool.ThreadedConnectionPool) — change only this file.
"""
from __future__ import annotations

import logging
from typing import Any

import psycopg2
import psycopg2.extras

from visapath.config.settings import Settings
from visapath.domain.exceptions import DatabaseError

logger = logging.getLogger(__name__)

# Profile columns the assessment pipeline reads (must match domain/models.py Profile)
_PROFILE_COLS = (
    "id",
    "date_of_birth",
    "nationality",
    "education_level",
    "current_occupation",
    "years_of_experience",
    "preferred_state",
)

# Catalog columns (must match domain/models.py VisaCategoryRef)
_CATALOG_COLS = (
    "id",
    "visa_code",
    "visa_name",
    "points_required",
    "description",
    "processing_time",
    "application_fee",
)

# Insertable assessment columns (must match AssessmentResult.to_row())
_ASSESSMENT_COLS = (
    "user_id",
    "assessment_score",
    "recommended_visa_id",
    "strengths",
    "improvement_areas",
    "detailed_analysis",
    "is_premium",
    "created_at",
)


class PostgresAssessmentStore:
    """psycopg2 implementation of AssessmentStorePort.

    Injected into AssessmentEngine via services/container.py.
    """

    def __init__(self, settings: Settings) -> None:
        self._dsn = settings.db_dsn
        self._conn: Any = None
        logger.debug("PostgresAssessmentStore ready | dsn=%s", self._dsn)

    # ── AssessmentStorePort implementation ────────────────────────────────

    def fetch_profile(self, user_id: str) -> dict[str, Any] | None:
        """Fetch one profile row by primary key (None if absent)."""
        sql = f"""
            SELECT {", ".join(_PROFILE_COLS)}
            FROM   profiles
            WHERE  id = %s
        """
        try:
            rows = self._execute(sql, (user_id,))
        except DatabaseError:
            raise
        except Exception as exc:
            raise DatabaseError(f"fetch_profile failed: {exc}") from exc
        return dict(rows[0]) if rows else None

    def fetch_visa_catalog(self) -> list[dict[str, Any]]:
        """Fetch the whole visa catalog ordered by visa_code."""
        sql = f"""
            SELECT {", ".join(_CATALOG_COLS)}
            FROM   visa_categories
            ORDER  BY visa_code
        """
        try:
            return [dict(row) for row in self._execute(sql, ())]
        except DatabaseError:
            raise
        except Exception as exc:
            raise DatabaseError(f"fetch_visa_catalog failed: {exc}") from exc

    def insert_assessment(self, row: dict[str, Any]) -> dict[str, Any]:
        """Insert one assessment and return the stored row."""
        values = []
        for col in _ASSESSMENT_COLS:
            value = row.get(col)
            if col == "detailed_analysis" and value is not None:
                value = psycopg2.extras.Json(value)
            values.append(value)

        sql = f"""
            INSERT INTO visa_assessments ({", ".join(_ASSESSMENT_COLS)})
            VALUES ({", ".join(["%s"] * len(_ASSESSMENT_COLS))})
            RETURNING *
        """
        try:
            rows = self._execute(sql, tuple(values))
        except DatabaseError:
            raise
        except Exception as exc:
            raise DatabaseError(f"insert_assessment failed: {exc}") from exc
        if not rows:
            raise DatabaseError("insert_assessment returned no row")
        return dict(rows[0])

    def list_assessments(self, user_id: str, limit: int) -> list[dict[str, Any]]:
        """Return a user's assessments, newest first."""
        sql = """
            SELECT *
            FROM   visa_assessments
            WHERE  user_id = %s
            ORDER  BY created_at DESC
            LIMIT  %s
        """
        try:
            return [dict(row) for row in self._execute(sql, (user_id, limit))]
        except DatabaseError:
            raise
        except Exception as exc:
            raise DatabaseError(f"list_assessments failed: {exc}") from exc

    # ── Connection helpers ─────────────────────────────────────────────────

    def _get_conn(self) -> Any:
        """Return an open connection, creating or reusing one."""
        if self._conn is None or self._conn.closed:
            self._conn = self._new_conn()
        return self._conn

    def _new_conn(self) -> Any:
        """Open a fresh autocommit psycopg2 connection."""
        try:
            conn = psycopg2.connect(self._dsn)
            conn.autocommit = True
            logger.debug("PostgresAssessmentStore: new connection opened")
            return conn
        except psycopg2.Error as exc:
            raise DatabaseError(f"Cannot connect to database: {exc}") from exc

    def _execute(self, sql: str, params: tuple) -> list[dict]:
        """Execute a statement and return rows as dicts, with one auto-reconnect."""
        for attempt in (1, 2):
            conn = self._get_conn()
            try:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                    cur.execute(sql, params)
                    if cur.description is None:
                        return []
                    return list(cur.fetchall())
            except psycopg2.OperationalError as exc:
                if attempt == 1:
                    logger.warning("DB OperationalError — reconnecting: %s", exc)
                    self._conn = None
                else:
                    raise DatabaseError(f"DB query failed after reconnect: {exc}") from exc
        return []  # unreachable

    def close(self) -> None:
        """Explicitly close the connection (optional — GC handles it otherwise)."""
        if self._conn and not self._conn.closed:
            self._conn.close()
            logger.debug("PostgresAssessmentStore: connection closed")
