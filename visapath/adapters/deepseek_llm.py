"""
adapters/deepseek_llm.py
──────────────────────────────────────────────────────────────────────────────
Implements LLMPort using the DeepSeek chat completions API.

DeepSeek speaks the OpenAI chat completions wire format, so this adapter
reuses OpenAILLMAdapter's request / retry / error-mapping logic and only
swaps the credential, endpoint and model name.  DeepSeek reports an empty
account balance as HTTP 402, which the shared logic tags as a quota failure.

Required env vars:
  DEEPSEEK_API_KEY   — DeepSeek secret key
  DEEPSEEK_MODEL     — default: deepseek-chat
  DEEPSEEK_BASE_URL  — default: https://api.deepseek.com

This is the default provider (LLM_PROVIDER=deepseek).
"""
from __future__ import annotations

from visapath.adapters.openai_llm import OpenAILLMAdapter
from visapath.config.settings import Settings


class DeepSeekLLMAdapter(OpenAILLMAdapter):
    """DeepSeek chat completions adapter.

    Injected into RemoteScorer via services/container.py.
    """

    provider = "DeepSeek"

    def _api_key(self, settings: Settings) -> str:
        return settings.deepseek_api_key

    def _build_chat_url(self, settings: Settings) -> str:
        return settings.deepseek_base_url.rstrip("/") + "/chat/completions"

    @property
    def model_name(self) -> str:
        return self._settings.deepseek_model
