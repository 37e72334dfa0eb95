"""
Thin synchronous client for an OpenAI-compatible chat completions API.

Every provider failure is converted into InterpreterError so callers deal with
a single exception type.
"""
from __future__ import annotations

from typing import Dict, List, Optional

import openai
import structlog
from openai import OpenAI

from .errors import InterpreterError

log = structlog.get_logger()


class LLMClient:
    """Chat completion entry point used by the instruction interpreter."""

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: int = 30,
        client: Optional[OpenAI] = None,
    ) -> None:
        self.model = model
        self.timeout = timeout
        self._api_key = api_key
        self._base_url = base_url
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            try:
                self._client = OpenAI(api_key=self._api_key, base_url=self._base_url, timeout=self.timeout)
            except openai.OpenAIError as e:
                raise InterpreterError(f"AI service is not configured: {e}", cause=e) from e
        return self._client

    def complete(
        self,
        messages: List[Dict[str, str]],
        json_mode: bool = False,
        temperature: float = 0.0,
        max_tokens: int = 512,
    ) -> str:
        """
        Send `messages` and return the text of the first choice.

        Args:
            messages: OpenAI format messages ({"role": ..., "content": ...}).
            json_mode: ask the model for a single JSON object.
            temperature: sampling temperature; 0 for classification tasks.
            max_tokens: output token cap.
        """
        kwargs: dict = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        client = self._get_client()
        log.debug("llm call started", model=self.model, msg_count=len(messages))

        try:
            response = client.chat.completions.create(**kwargs)
        except openai.AuthenticationError as e:
            log.error("llm authentication failed", model=self.model, error=str(e))
            raise InterpreterError(f"AI service rejected the credentials: {e}", cause=e) from e
        except openai.RateLimitError as e:
            log.warning("llm rate limited", model=self.model, error=str(e))
            raise InterpreterError(f"AI service rate limit reached: {e}", cause=e) from e
        except openai.APITimeoutError as e:
            log.warning("llm call timed out", model=self.model, timeout=self.timeout)
            raise InterpreterError(f"AI service timed out after {self.timeout}s", cause=e) from e
        except openai.APIConnectionError as e:
            log.error("llm connection failed", model=self.model, error=str(e))
            raise InterpreterError(f"AI service is unreachable: {e}", cause=e) from e
        except openai.APIError as e:
            log.error("llm api error", model=self.model, error=str(e))
            raise InterpreterError(f"AI service returned an error: {e}", cause=e) from e

        if not response.choices:
            raise InterpreterError("AI service returned no choices")
        content = response.choices[0].message.content or ""
        usage = response.usage
        log.debug(
            "llm call finished",
            model=response.model or self.model,
            total_tokens=usage.total_tokens if usage else 0,
        )
        return content
