from __future__ import annotations

import os
import time

import httpx
from typing import Union

from .base import ChatResponse, ServiceError

OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenAIAdapter:
    id = "openai"

    def __init__(self, model: str, api_key_env: str = "OPENAI_API_KEY", base_url: str = OPENAI_BASE_URL) -> None:
        self.model = model
        self.api_key = os.environ.get(api_key_env, "")
        self.api_key_env = api_key_env
        proxy = os.environ.get("HTTPS_PROXY") or os.environ.get("HTTP_PROXY")
        if proxy:
            self.client = httpx.AsyncClient(base_url=base_url, proxy=proxy)
        else:
            self.client = httpx.AsyncClient(base_url=base_url)

    async def send(
        self, messages: list[dict[str, str]], params: Union[dict, None] = None
    ) -> ChatResponse:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        payload = {
            "model": self.model,
            "messages": messages,
        }
        if params:
            payload.update(params)
        start = time.perf_counter()
        try:
            resp = await self.client.post("/chat/completions", json=payload, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ServiceError(self._parse_api_error(e.response), e.response.status_code) from e
        except httpx.HTTPError as e:
            raise ServiceError(f"OpenAI API request failed for model '{self.model}': {e}") from e
        latency_ms = int((time.perf_counter() - start) * 1000)
        data = resp.json()
        text = data["choices"][0]["message"].get("content") or ""
        tokens_in = data.get("usage", {}).get("prompt_tokens")
        tokens_out = data.get("usage", {}).get("completion_tokens")
        return ChatResponse(
            text=text, tokens_in=tokens_in, tokens_out=tokens_out, latency_ms=latency_ms
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    def _parse_api_error(self, response: httpx.Response) -> str:
        """Turn an OpenAI error body into an actionable message."""
        try:
            error = response.json().get("error", {})
        except ValueError:
            error = {}
        if not isinstance(error, dict):
            error = {"message": str(error)}
        error_type = error.get("type", "unknown_error")
        error_message = error.get("message") or response.text[:200]
        status_code = response.status_code

        if status_code == 401:
            return f"Authentication failed for OpenAI API. Check {self.api_key_env}. ({error_message})"
        if status_code == 404 and "model" in error_message.lower():
            return f"Model '{self.model}' not found or not accessible. ({error_message})"
        if status_code == 403:
            return f"Access forbidden for model '{self.model}'. ({error_message})"
        if status_code == 429:
            return f"Rate limit exceeded for OpenAI API. ({error_message})"
        return f"OpenAI API error ({status_code}, {error_type}) for model '{self.model}': {error_message}"
