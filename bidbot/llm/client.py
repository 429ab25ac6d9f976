"""
LLM Client – thin wrapper around an OpenAI-compatible chat completions API.

Usage:
    client = LLMClient(api_key="sk-...")
    text = await client.chat("Write a proposal...", system="You are a freelancer.")
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

import httpx

from ..config import DEFAULT_OPENAI_BASE_URL, DEFAULT_OPENAI_MODEL, Settings

logger = logging.getLogger("bidbot.llm")

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_MAX_TOKENS = 500
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TOP_P = 0.9
REQUEST_TIMEOUT = 60.0  # seconds
MAX_RETRIES = 2
RETRY_DELAY = 3.0  # seconds
RETRYABLE_STATUS = (429, 502, 503)


class LLMError(Exception):
    """Base exception for LLM operations."""
    pass


class LLMConnectionError(LLMError):
    """LLM endpoint is unreachable or not configured."""
    pass


class LLMResponseError(LLMError):
    """LLM endpoint returned an error or an unusable response."""
    pass


class LLMClient:
    """Async client for /chat/completions."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_OPENAI_BASE_URL,
        model: str = DEFAULT_OPENAI_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float = REQUEST_TIMEOUT,
        retry_delay: float = RETRY_DELAY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.retry_delay = retry_delay
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMClient":
        return cls(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            timeout=settings.llm_timeout,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=httpx.Timeout(self.timeout, connect=10.0),
                transport=self._transport,
            )
        return self._http

    async def close(self):
        if self._http and not self._http.is_closed:
            await self._http.aclose()
            self._http = None

    # ------------------------------------------------------------------
    # Core chat
    # ------------------------------------------------------------------
    async def chat(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        top_p: float = DEFAULT_TOP_P,
    ) -> str:
        """Send a chat completion request and return the assistant's text."""
        if not self.is_configured:
            raise LLMConnectionError("LLM client not configured (missing API key)")

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        payload = {
            "model": model or self.model,
            "messages": messages,
            "max_tokens": max_tokens or self.max_tokens,
            "temperature": temperature if temperature is not None else self.temperature,
            "top_p": top_p,
        }

        http = await self._get_http()

        last_error = None
        for attempt in range(1, MAX_RETRIES + 2):
            try:
                t0 = time.time()
                r = await http.post("/chat/completions", json=payload)
                elapsed = time.time() - t0
                logger.info(f"LLM request completed in {elapsed:.1f}s (attempt {attempt})")

                r.raise_for_status()

                data = r.json()
                choices = data.get("choices", [])
                if not choices:
                    raise LLMResponseError("Empty choices in LLM response")

                content = (choices[0].get("message") or {}).get("content") or ""
                if not content.strip():
                    raise LLMResponseError("Empty content in LLM response")
                return content

            except (httpx.ConnectError, httpx.ConnectTimeout) as e:
                last_error = LLMConnectionError(f"Cannot reach LLM endpoint: {e}")
                if attempt <= MAX_RETRIES:
                    logger.warning(f"LLM connection failed, retrying in {self.retry_delay}s...")
                    await asyncio.sleep(self.retry_delay)
                    continue
                raise last_error from e

            except httpx.HTTPStatusError as e:
                last_error = LLMResponseError(f"HTTP {e.response.status_code}: {e.response.text[:300]}")
                if e.response.status_code in RETRYABLE_STATUS and attempt <= MAX_RETRIES:
                    logger.warning(f"LLM rate-limited/unavailable, retrying in {self.retry_delay}s...")
                    await asyncio.sleep(self.retry_delay)
                    continue
                raise last_error from e

            except LLMError:
                raise

            except Exception as e:
                raise LLMResponseError(f"Unexpected error: {e}") from e

        raise last_error or LLMError("Max retries exceeded")
