"""
adapters/openai_llm.py
──────────────────────────────────────────────────────────────────────────────
Implements LLMPort using the OpenAI Chat Completions API.

Key behaviour:
  - Uses /v1/chat/completions via raw requests (no openai SDK dependency)
  - Requests JSON output via response_format={"type": "json_object"}
  - system_prompt → system role message; user_message → user role message
  - Retries on 429 / 500 / 503 with exponential back-off
  - Quota / billing exhaustion (HTTP 402, "insufficient_quota" and friends)
    is never retried and is tagged RemoteFailureKind.QUOTA
  - Every failure raises RemoteScoringFailed; the assessment engine turns
    that into the deterministic fallback

Required env vars:
  OPENAI_API_KEY     — your OpenAI secret key  (sk-...)
  OPENAI_LLM_MODEL   — default: gpt-4o-mini

To enable:
  Set LLM_PROVIDER=openai in your .env file.
"""
from __future__ import annotations

import logging
import time
from typing import Any

import requests

from visapath.config.settings import Settings
from visapath.domain.exceptions import (
    RemoteFailureKind,
    RemoteScoringFailed,
    RemoteScoringUnavailable,
)

logger = logging.getLogger(__name__)

_OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"

# Substrings that mark an error object as quota / billing exhaustion
_QUOTA_MARKERS = ("quota", "billing", "insufficient", "balance")


class OpenAILLMAdapter:
    """OpenAI GPT chat completions adapter.

    Injected into RemoteScorer via services/container.py when
    ``LLM_PROVIDER=openai`` is set in the environment.

    .. note::
        OpenAI's JSON mode requires the word "JSON" to appear somewhere in
        the prompt.  ``config/prompts.py`` already includes it.
    """

    provider = "OpenAI"

    def __init__(self, settings: Settings) -> None:
        api_key = self._api_key(settings)
        if not api_key:
            raise RemoteScoringUnavailable(
                f"No API key configured for {self.provider}. "
                "Add it to your .env file or environment."
            )
        self._settings = settings
        self._chat_url = self._build_chat_url(settings)
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        logger.debug("%s adapter ready | model=%s", self.provider, self.model_name)

    # ── Provider hooks (overridden by OpenAI-compatible providers) ─────────

    def _api_key(self, settings: Settings) -> str:
        return settings.openai_api_key

    def _build_chat_url(self, settings: Settings) -> str:
        return _OPENAI_CHAT_URL

    # ── LLMPort implementation ─────────────────────────────────────────────

    @property
    def model_name(self) -> str:
        """Name of the underlying OpenAI chat model."""
        return self._settings.openai_llm_model

    def generate_json(
        self,
        system_prompt: str,
        user_message: str,
    ) -> str:
        """Send a prompt and return the raw answer text.

        Args:
            system_prompt: System-level instruction for the model.
            user_message:  User-turn message content.

        Returns:
            Non-empty answer text from the model.

        Raises:
            RemoteScoringFailed: On any transport, HTTP, error-object or
                empty-answer failure (see ``failure_kind``).
        """
        payload = self._build_payload(system_prompt, user_message)
        return self._post_with_retry(payload)

    # ── Private helpers ────────────────────────────────────────────────────

    def _build_payload(self, system_prompt: str, user_message: str) -> dict:
        """Build the chat completions request body."""
        return {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            "temperature": self._settings.llm_temperature,
            "response_format": {"type": "json_object"},
        }

    def _post_with_retry(self, payload: dict) -> str:
        """POST to the chat endpoint with back-off on 429 / 500 / 503."""
        retries = max(1, self._settings.llm_retries)
        delay = 2.0
        last_failure: RemoteScoringFailed | None = None

        for attempt in range(1, retries + 1):
            try:
                resp = requests.post(
                    self._chat_url,
                    headers=self._headers,
                    json=payload,
                    timeout=self._settings.llm_timeout,
                )
            except requests.RequestException as exc:
                last_failure = RemoteScoringFailed(
                    f"{self.provider} request error: {exc}",
                    RemoteFailureKind.TRANSPORT,
                )
                logger.warning(
                    "%s LLM request error (attempt %d/%d): %s",
                    self.provider, attempt, retries, exc,
                )
                if attempt < retries:
                    time.sleep(delay)
                    delay *= 2
                continue

            body = _json_body(resp)
            error = body.get("error") if isinstance(body, dict) else None

            if resp.status_code == 402 or _is_quota_error(error):
                logger.error(
                    "%s quota / billing exhausted (HTTP %d): %s",
                    self.provider, resp.status_code, _error_message(error),
                )
                raise RemoteScoringFailed(
                    f"{self.provider} quota exceeded: {_error_message(error)}",
                    RemoteFailureKind.QUOTA,
                )

            if resp.status_code in (429, 500, 503):
                last_failure = RemoteScoringFailed(
                    f"{self.provider} HTTP {resp.status_code}",
                    RemoteFailureKind.HTTP,
                )
                logger.warning(
                    "%s LLM %d (attempt %d/%d) — back-off %.1fs",
                    self.provider, resp.status_code, attempt, retries, delay,
                )
                if attempt < retries:
                    time.sleep(delay)
                    delay *= 2
                continue

            if not resp.ok:
                logger.error(
                    "%s LLM HTTP %d: %s",
                    self.provider, resp.status_code, str(resp.text)[:300],
                )
                raise RemoteScoringFailed(
                    f"{self.provider} HTTP {resp.status_code}",
                    RemoteFailureKind.HTTP,
                )

            if error:
                logger.error("%s API error: %s", self.provider, _error_message(error))
                raise RemoteScoringFailed(
                    f"{self.provider} API error: {_error_message(error)}",
                    RemoteFailureKind.ERROR_OBJECT,
                )

            return self._extract_text(body)

        logger.error("%s LLM failed after %d attempts", self.provider, retries)
        raise last_failure or RemoteScoringFailed(
            f"{self.provider} LLM failed after {retries} attempts"
        )

    def _extract_text(self, response_json: Any) -> str:
        """Pull the content string out of the chat completions response."""
        if not isinstance(response_json, dict):
            raise RemoteScoringFailed(
                f"{self.provider} response was not a JSON object",
                RemoteFailureKind.EMPTY_RESPONSE,
            )
        choices = response_json.get("choices") or []
        if not isinstance(choices, list) or not choices:
            logger.warning("%s response contained no choices", self.provider)
            raise RemoteScoringFailed(
                f"Invalid response from {self.provider}: no choices",
                RemoteFailureKind.EMPTY_RESPONSE,
            )
        try:
            content = (choices[0].get("message", {}).get("content") or "").strip()
        except (KeyError, IndexError, AttributeError, TypeError) as exc:
            logger.error("Failed to parse %s response structure: %s", self.provider, exc)
            raise RemoteScoringFailed(
                f"Malformed {self.provider} response: {exc}",
                RemoteFailureKind.EMPTY_RESPONSE,
            ) from exc
        if not content:
            raise RemoteScoringFailed(
                f"{self.provider} returned an empty answer",
                RemoteFailureKind.EMPTY_RESPONSE,
            )
        return content


# ── Module helpers ─────────────────────────────────────────────────────────────

def _json_body(resp: requests.Response) -> Any:
    """Decode a response body, returning None when it is not JSON."""
    try:
        return resp.json()
    except ValueError:
        return None


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error.get("code") or error)
    return str(error)


def _is_quota_error(error: Any) -> bool:
    """True when an API error object describes quota or billing exhaustion."""
    if not error:
        return False
    if isinstance(error, dict):
        text = " ".join(
            str(error.get(k) or "") for k in ("code", "type", "message")
        ).lower()
    else:
        text = str(error).lower()
    return any(marker in text for marker in _QUOTA_MARKERS)
