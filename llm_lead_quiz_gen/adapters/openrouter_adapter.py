from __future__ import annotations

import os
import time
from typing import Union

import httpx

from .base import ChatResponse, ServiceError

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
OPENROUTER_PREFIX = "openrouter:"


def strip_prefix(model_id: str) -> str:
    if model_id.startswith(OPENROUTER_PREFIX):
        return model_id[len(OPENROUTER_PREFIX) :]
    return model_id


class OpenRouterAdapter:
    id = "openrouter"

    def __init__(self, model: str, api_key_env: str = "OPENROUTER_API_KEY") -> None:
        self.model = strip_prefix(model)
        self.api_key = os.environ.get(api_key_env, "")
        self.api_key_env = api_key_env
        proxy = os.environ.get("HTTPS_PROXY") or os.environ.get("HTTP_PROXY")
        if proxy:
            self.client = httpx.AsyncClient(base_url=OPENROUTER_BASE_URL, proxy=proxy)
        else:
            self.client = httpx.AsyncClient(base_url=OPENROUTER_BASE_URL)

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
            raise ServiceError(self._format_api_error(e.response), e.response.status_code) from e
        except httpx.HTTPError as e:
            raise ServiceError(
                f"OpenRouter API request failed for model '{self.model}': {str(e)}"
            ) from e
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

    def _format_api_error(self, response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        error = payload.get("error") if isinstance(payload.get("error"), dict) else {}
        message = error.get("message") or payload.get("message") or response.text
        status = response.status_code
        if status == 401:
            return f"Authentication failed for OpenRouter API. Check {self.api_key_env}."
        if status == 404 and "model" in str(message).lower():
            return f"OpenRouter model '{self.model}' not found or not accessible."
        return f"OpenRouter API error ({status}): {message}"
