"""
domain/exceptions.py
──────────────────────────────────────────────────────────────────────────────
Custom exception hierarchy.

All exceptions are rooted at VisaPathError so callers can catch broadly
(except VisaPathError) or narrowly (except ProfileUnavailable).

Only three errors terminate an assessment without producing a result:
  ProfileUnavailable, CatalogUnavailable, PersistFailed

Everything raised on the remote-scoring path is absorbed by the engine:
  RemoteScoringUnavailable → no remote scorer wired, deterministic model used
  RemoteScoringFailed      → deterministic model used
  RemoteParseFailed        → synthesized placeholder result used

When adding an HTTP layer, map the terminal errors to status codes:
  ProfileUnavailable  → 404
  CatalogUnavailable  → 503
  PersistFailed       → 503
"""
from __future__ import annotations

from enum import Enum


class VisaPathError(Exception):
    """Base exception for all application errors."""

    kind = "error"


class ConfigurationError(VisaPathError):
    """Raised when required configuration is missing or invalid."""

    kind = "configuration"


class DatabaseError(VisaPathError):
    """Raised when a data store operation fails."""

    kind = "database"


# ── Terminal assessment errors ─────────────────────────────────────────────────

class ProfileUnavailable(VisaPathError):
    """Raised when the user's profile cannot be loaded."""

    kind = "profile_unavailable"


class CatalogUnavailable(VisaPathError):
    """Raised when the visa category catalog cannot be loaded."""

    kind = "catalog_unavailable"


class PersistFailed(VisaPathError):
    """Raised when the assessment row cannot be stored."""

    kind = "persist_failed"


# ── Remote scoring (always recovered locally) ──────────────────────────────────

class RemoteFailureKind(str, Enum):
    """Why a remote scoring call produced no usable answer."""
    TRANSPORT      = "transport"       # connection error or timeout
    HTTP           = "http"            # non-2xx status
    QUOTA          = "quota"           # quota / billing exhausted
    ERROR_OBJECT   = "error_object"    # 2xx body carrying an "error" object
    EMPTY_RESPONSE = "empty_response"  # no choices or blank content


class RemoteScoringUnavailable(VisaPathError):
    """Raised when no credential is configured for the remote scorer."""

    kind = "remote_unavailable"


class RemoteScoringFailed(VisaPathError):
    """Raised when the remote scoring call fails outright."""

    kind = "remote_failed"

    def __init__(
        self,
        message: str,
        failure_kind: RemoteFailureKind = RemoteFailureKind.TRANSPORT,
    ) -> None:
        super().__init__(message)
        self.failure_kind = failure_kind

    @property
    def is_quota(self) -> bool:
        return self.failure_kind == RemoteFailureKind.QUOTA


class RemoteParseFailed(VisaPathError):
    """Raised when a remote answer exists but is not the expected JSON."""

    kind = "remote_parse_failed"

    def __init__(self, message: str, raw_text: str) -> None:
        super().__init__(message)
        self.raw_text = raw_text
