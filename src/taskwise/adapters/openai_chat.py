"""OpenAI-compatible chat completions adapter - HTTP client for suggestions."""

import logging

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o"


class OpenAIChatService:
    """
    Chat completions adapter.

    Implements LLMService protocol. Requests JSON-object responses. No
    business logic - just I/O.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = 60,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def generate(self, prompt: str, system: str | None = None) -> str:
        """Generate text from a prompt. Returns complete response."""
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            resp = self._session.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "model": self.model,
                    "messages": messages,
                    "response_format": {"type": "json_object"},
                },
                timeout=self.timeout,
            )
        except requests.Timeout:
            raise RuntimeError(f"LLM request timed out after {self.timeout}s")
        except requests.RequestException as e:
            logger.error(f"LLM request failed: {e}")
            raise RuntimeError(f"LLM request failed: {e}") from e

        if resp.status_code != 200:
            logger.error(f"LLM request failed ({resp.status_code}): {resp.text}")
            raise RuntimeError(f"LLM request failed ({resp.status_code}): {resp.text}")

        try:
            data = resp.json()
            return data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise RuntimeError(f"Unexpected LLM response: {e}") from e
