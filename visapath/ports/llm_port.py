"""
ports/llm_port.py
──────────────────────────────────────────────────────────────────────────────
Abstract interface for LLM (large language model) providers.

Current implementations: DeepSeekLLMAdapter (default), OpenAILLMAdapter
To swap: write a new adapter implementing this Protocol, then change ONE
line in services/container.py.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class LLMPort(Protocol):
    """Contract for a JSON-generating LLM provider."""

    @property
    def model_name(self) -> str:
        """Identifier of the underlying LLM."""
        ...

    def generate_json(
        self,
        system_prompt: str,
        user_message: str,
    ) -> str:
        """Send a prompt to the LLM and return its answer text.

        The caller is responsible for parsing the returned string; adapters
        request JSON-mode output but do not guarantee it.

        Args:
            system_prompt: System-level instruction.
            user_message:  User-turn content.

        Returns:
            Non-empty answer text.

        Raises:
            RemoteScoringFailed: On transport/HTTP failure, a structured
                error object in the body (quota, billing), or an empty answer.
        """
        ...
