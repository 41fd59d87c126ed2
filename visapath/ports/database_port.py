"""
ports/database_port.py
──────────────────────────────────────────────────────────────────────────────
Abstract interface for the row store behind the assessment pipeline.

The port keeps the four data concerns separate:
  1. fetch_profile        — one profile row by user id
  2. fetch_visa_catalog   — the full read-only visa_categories table
  3. insert_assessment    — append one visa_assessments row
  4. list_assessments     — a user's assessment history, newest first

Rows cross the port as plain dicts; the engine validates them into domain
models, so adapters stay free of business types.

Current implementation: PostgresAssessmentStore (psycopg2)
To swap: write a new adapter implementing this Protocol and change ONE
line in services/container.py.
"""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class AssessmentStorePort(Protocol):
    """Contract for the profile / catalog / assessment store."""

    def fetch_profile(self, user_id: str) -> dict[str, Any] | None:
        """Fetch a single profile row.

        Returns:
            Row dict, or None if no profile exists for ``user_id``.

        Raises:
            DatabaseError: On connection or query failure.
        """
        ...

    def fetch_visa_catalog(self) -> list[dict[str, Any]]:
        """Fetch every visa category row, ordered by visa_code.

        Raises:
            DatabaseError: On connection or query failure.
        """
        ...

    def insert_assessment(self, row: dict[str, Any]) -> dict[str, Any]:
        """Insert one assessment row and return it as stored.

        Args:
            row: Column → value mapping (see AssessmentResult.to_row()).

        Returns:
            The stored row, including generated ``id`` and ``created_at``.

        Raises:
            DatabaseError: On connection, constraint or query failure.
        """
        ...

    def list_assessments(self, user_id: str, limit: int) -> list[dict[str, Any]]:
        """Return up to ``limit`` assessment rows for a user, newest first.

        Raises:
            DatabaseError: On connection or query failure.
        """
        ...
