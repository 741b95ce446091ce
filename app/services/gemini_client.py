"""
Thin client for the Google Generative Language ``generateContent`` endpoint.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import Depends

from app.config import Settings, get_settings
from app.core.exceptions import AIServiceUnavailableError

logger = logging.getLogger(__name__)


class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: str,
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = http_client

    @classmethod
    def from_settings(
        cls, settings: Settings, http_client: Optional[httpx.Client] = None
    ) -> "GeminiClient":
        return cls(
            api_key=settings.GEMINI_API_KEY,
            model=settings.GEMINI_MODEL,
            base_url=settings.GEMINI_API_BASE_URL,
            timeout=settings.AI_REQUEST_TIMEOUT_SECONDS,
            http_client=http_client,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        headers = {"Content-Type": "application/json", "x-goog-api-key": self.api_key}
        if self._http_client is not None:
            return self._http_client.post(
                self.endpoint, json=payload, headers=headers, timeout=self.timeout
            )
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(self.endpoint, json=payload, headers=headers)

    def generate(self, prompt: str) -> str:
        """
        Send a single-turn prompt and return the first candidate's text.

        Raises:
            AIServiceUnavailableError when the key is missing, the request
            fails, or the response carries no text.
        """
        if not self.is_configured:
            logger.warning("GEMINI_API_KEY is not set; AI suggestions are disabled")
            raise AIServiceUnavailableError(
                "AI suggestions are currently unavailable as the API key is not configured."
            )

        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        try:
            response = self._post(payload)
        except httpx.HTTPError as exc:
            logger.error("Gemini request failed: %s", exc)
            raise AIServiceUnavailableError(
                "Network error when trying to reach the AI service."
            ) from exc

        if response.status_code >= 400:
            logger.error(
                "Gemini API returned %s: %s", response.status_code, response.text[:500]
            )
            raise AIServiceUnavailableError()

        try:
            result = response.json()
        except ValueError as exc:
            logger.error("Gemini API returned a non-JSON body")
            raise AIServiceUnavailableError() from exc

        if result.get("error"):
            logger.error("Gemini API error object: %s", result["error"])
            raise AIServiceUnavailableError()

        text = _first_candidate_text(result)
        if not text:
            logger.warning("Gemini response had no candidate text")
            raise AIServiceUnavailableError(
                "I'm having a little trouble formulating a response right now. "
                "Please try again in a moment!"
            )
        return text.strip()


def _first_candidate_text(result: Dict[str, Any]) -> Optional[str]:
    candidates = result.get("candidates") or []
    if not candidates:
        return None
    parts = (candidates[0].get("content") or {}).get("parts") or []
    if not parts:
        return None
    return parts[0].get("text")


def get_gemini_client(settings: Settings = Depends(get_settings)) -> GeminiClient:
    return GeminiClient.from_settings(settings)
