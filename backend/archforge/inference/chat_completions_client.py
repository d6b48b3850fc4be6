import logging
from typing import Dict, List, Optional

import requests

from archforge.inference.base import LLMClient
from archforge.ir.errors import LLMError

logger = logging.getLogger(__name__)


class ChatCompletionsClient(LLMClient):
    """Client for OpenAI-compatible ``/chat/completions`` endpoints."""

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: Optional[str] = None,
        temperature: float = 0.2,
        timeout: float = 120,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.temperature = temperature
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def generate(
        self,
        messages: List[Dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        model: Optional[str] = None,
    ) -> str:
        url = f"{self.base_url}/chat/completions"

        payload = {
            "model": model or self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        try:
            response = self.session.post(
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Language model request failed: %s", e)
            raise LLMError(f"Language model request failed: {e}") from e

        if not response.ok:
            logger.error(
                "Language model API error: %s - %s",
                response.status_code,
                response.text[:500],
            )
            raise LLMError(
                f"Language model API error: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            choices = response.json()["choices"]
            content = choices[0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMError(f"Unexpected language model response shape: {e}") from e

        if not content or not content.strip():
            raise LLMError("Empty response from language model")

        return content.strip()
