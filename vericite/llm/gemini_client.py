"""Gemini generateContent client shared by extraction, grounding, and reformatting."""

from __future__ import annotations

import asyncio
import os
from typing import Any

import aiohttp

from vericite.exceptions import APIKeyError, NetworkError, ParsingError, raise_for_status
from vericite.utils.http import upstream_session


class GeminiClient:
    """Calls Gemini generateContent.

    Supports structured JSON output via json_schema and tool use (Google
    Search grounding) via tools. Transient failures surface as
    RateLimitError / ServiceOverloadedError; callers wrap calls in a
    RetryingInvoker.
    """

    _BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(self, api_key: str | None = None, timeout_seconds: float = 120.0):
        self._api_key = api_key
        self.timeout_seconds = timeout_seconds

    def _resolve_key(self) -> str:
        api_key = self._api_key or os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise APIKeyError("GEMINI_API_KEY not set; cannot call Gemini.", service="Gemini")
        return api_key

    async def generate(
        self,
        prompt: str,
        *,
        model: str,
        temperature: float = 0.1,
        json_schema: dict | None = None,
        tools: list[dict] | None = None,
    ) -> dict[str, Any]:
        """Return the raw generateContent response body."""
        api_key = self._resolve_key()
        model_name = model.split(":", 1)[-1]
        url = f"{self._BASE_URL}/{model_name}:generateContent"
        gen_config: dict[str, Any] = {"temperature": temperature}
        if json_schema is not None:
            gen_config["responseMimeType"] = "application/json"
            gen_config["responseJsonSchema"] = json_schema
        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": gen_config,
        }
        if tools:
            payload["tools"] = tools
        params = {"key": api_key}
        try:
            async with upstream_session(self.timeout_seconds) as session:
                async with session.post(url, params=params, json=payload) as resp:
                    if resp.status != 200:
                        body = await resp.text()
                        raise_for_status(resp.status, body, "Gemini")
                    try:
                        return await resp.json()
                    except (aiohttp.ContentTypeError, ValueError) as exc:
                        raise ParsingError(f"Gemini returned invalid JSON: {exc}", service="Gemini") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NetworkError(f"Gemini request failed: {type(exc).__name__}: {exc}", service="Gemini") from exc

    async def complete(
        self,
        prompt: str,
        *,
        model: str,
        temperature: float = 0.1,
        json_schema: dict | None = None,
    ) -> str:
        """Return the Gemini response text (or JSON string if json_schema is supplied)."""
        data = await self.generate(
            prompt, model=model, temperature=temperature, json_schema=json_schema
        )
        return response_text(data)


def response_text(data: dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        raise ParsingError("Gemini returned no candidates.", service="Gemini")
    parts = candidates[0].get("content", {}).get("parts", [])
    text = "".join(str(p.get("text") or "") for p in parts).strip()
    if not text:
        raise ParsingError("Gemini returned empty text.", service="Gemini")
    return text
