"""Text completion clients used by the prompt synthesizer."""
from __future__ import annotations

import logging
import time
from typing import Protocol

from .config import (
    LLM_MAX_TOKENS,
    LLM_TEMPERATURE,
    MAX_RETRIES,
    RETRY_DELAY,
    Config,
)

log = logging.getLogger(__name__)


class TextCompleter(Protocol):
    def complete(self, system: str, user: str, response_format: str = "json") -> str:
        ...


class HFTextCompleter:
    """Chat completion via the HF Inference API."""

    def __init__(
        self,
        token: str,
        model: str,
        timeout: float | None = None,
        max_retries: int = MAX_RETRIES,
    ):
        from huggingface_hub import InferenceClient

        if not token:
            raise ValueError("HF_TOKEN is not set.")
        self.model = model
        self.max_retries = max_retries
        self.client = InferenceClient(token=token, timeout=timeout)

    def complete(self, system: str, user: str, response_format: str = "json") -> str:
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]
        kwargs = {}
        if response_format == "json":
            kwargs["response_format"] = {"type": "json_object"}

        for attempt in range(self.max_retries):
            try:
                response = self.client.chat_completion(
                    model=self.model,
                    messages=messages,
                    max_tokens=LLM_MAX_TOKENS,
                    temperature=LLM_TEMPERATURE,
                    **kwargs,
                )
                return response.choices[0].message.content or ""
            except Exception as e:
                if attempt == self.max_retries - 1:
                    raise RuntimeError(
                        f"Failed to get response after {self.max_retries} attempts: {e}"
                    ) from e
                log.warning("HF completion failed (attempt %d): %s", attempt + 1, e)
                time.sleep(RETRY_DELAY * 2 ** attempt)  # Exponential backoff
        return ""


class GeminiTextCompleter:
    """Text generation via the Gemini API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float | None = None,
        max_retries: int = MAX_RETRIES,
    ):
        from google import genai
        from google.genai import types

        if not api_key:
            raise ValueError("GEMINI_API_KEY is not set.")
        self.model = model
        self.max_retries = max_retries
        http_options = None
        if timeout:
            # HttpOptions.timeout is in milliseconds
            http_options = types.HttpOptions(timeout=int(timeout * 1000))
        self.client = genai.Client(api_key=api_key, http_options=http_options)

    def complete(self, system: str, user: str, response_format: str = "json") -> str:
        from google.genai import types

        gen_config = types.GenerateContentConfig(
            system_instruction=system,
            temperature=LLM_TEMPERATURE,
            max_output_tokens=LLM_MAX_TOKENS,
            response_mime_type="application/json" if response_format == "json" else None,
        )

        for attempt in range(self.max_retries):
            try:
                response = self.client.models.generate_content(
                    model=self.model,
                    contents=user,
                    config=gen_config,
                )
                return response.text or ""
            except Exception as e:
                if attempt == self.max_retries - 1:
                    raise RuntimeError(
                        f"Failed to get Gemini response after {self.max_retries} attempts: {e}"
                    ) from e
                log.warning("Gemini completion failed (attempt %d): %s", attempt + 1, e)
                time.sleep(RETRY_DELAY * 2 ** attempt)
        return ""


def get_completer(config: Config) -> TextCompleter:
    """Build the completer selected by ``config.provider``."""
    model = config.resolved_text_model
    if config.provider == "gemini":
        return GeminiTextCompleter(config.gemini_api_key, model, timeout=config.llm_timeout)
    if config.provider == "hf":
        return HFTextCompleter(config.hf_token, model, timeout=config.llm_timeout)
    raise ValueError(f"Unknown text provider: {config.provider!r}")
