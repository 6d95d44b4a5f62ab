"""
LLM client and it does:
- Sends prompts to an OpenAI-compatible chat completions endpoint
- Retries transient failures with backoff
- Produces plain text or schema-validated objects (with one repair round)
- Tags connection failures as downstream-unavailable

Main purpose:
Central interface for all model calls. Configuration is an explicit
immutable value handed to the client, never module state.
"""


import asyncio
import json
from typing import Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel

from ai_starter.core.config import Settings, settings
from ai_starter.core.errors import DownstreamUnavailableError, GenerationError
from ai_starter.core.logging import get_logger
from ai_starter.llm.json_parse import extract_json_object
from ai_starter.llm.prompts import REPAIR_SYSTEM, REPAIR_USER, STRUCTURED_OUTPUT_SYSTEM

log = get_logger("llm.provider")

T = TypeVar("T", bound=BaseModel)

TRANSIENT_STATUSES = (429, 500, 502, 503, 504)


class GenerationConfig(BaseModel):
    provider: str = "openai"  # openai | mock
    model: str = "gpt-4o-2024-11-20"
    temperature: float = 0.8
    max_tokens: int = 32000
    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    timeout: float = 40.0
    attempts: int = 3
    retry_backoff: float = 0.6

    class Config:
        frozen = True

    @classmethod
    def from_settings(cls, s: Optional[Settings] = None) -> "GenerationConfig":
        s = s or settings
        return cls(
            provider=(s.LLM_PROVIDER or "").lower().strip(),
            model=s.LLM_MODEL,
            temperature=s.LLM_TEMPERATURE,
            max_tokens=s.LLM_MAX_TOKENS,
            base_url=s.OPENAI_BASE_URL,
            api_key=s.OPENAI_API_KEY,
            timeout=s.LLM_TIMEOUT_SECONDS,
        )


def _safe_snippet(text: str, n: int = 400) -> str:
    return (text or "")[:n].replace("\n", "\\n").replace("\r", "\\r")


def _messages(prompt: str, system: Optional[str] = None) -> List[Dict[str, str]]:
    msgs = [{"role": "system", "content": system}] if system else []
    msgs.append({"role": "user", "content": prompt})
    return msgs


class LLMClient:
    def __init__(self, config: GenerationConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport

    def _check_provider(self) -> None:
        if self.config.provider not in ("openai", "mock"):
            raise GenerationError(f"Unsupported LLM_PROVIDER={self.config.provider}. Use openai or mock.")

    async def _post_chat(self, messages: List[Dict[str, str]]) -> str:
        if not self.config.api_key:
            raise GenerationError("Missing OPENAI_API_KEY. Put it in your .env")

        url = f"{self.config.base_url.rstrip('/')}/chat/completions"
        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        payload = {
            "model": self.config.model,
            "messages": messages,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }
        timeout = httpx.Timeout(self.config.timeout, connect=10.0)
        attempts = max(1, self.config.attempts)

        last_err: Exception | None = None
        for attempt in range(attempts):
            backoff = self.config.retry_backoff * (2**attempt)
            try:
                async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                    r = await client.post(url, headers=headers, json=payload)
            except httpx.TransportError as e:
                last_err = e
                log.warning(f"LLM call failed: {e!r}. retrying in {backoff:.1f}s (attempt {attempt+1}/{attempts})")
                if attempt + 1 < attempts:
                    await asyncio.sleep(backoff)
                continue

            if r.status_code in TRANSIENT_STATUSES:
                last_err = GenerationError(f"LLM transient {r.status_code}: {_safe_snippet(r.text)}")
                log.warning(f"{last_err}. retrying in {backoff:.1f}s (attempt {attempt+1}/{attempts})")
                if attempt + 1 < attempts:
                    await asyncio.sleep(backoff)
                continue

            if r.status_code >= 400:
                raise GenerationError(f"LLM error {r.status_code}: {_safe_snippet(r.text)}")

            try:
                return r.json()["choices"][0]["message"]["content"]
            except (ValueError, KeyError, IndexError, TypeError):
                raise GenerationError(f"Unexpected LLM response: {_safe_snippet(r.text)}")

        if isinstance(last_err, (httpx.ConnectError, httpx.ConnectTimeout)):
            raise DownstreamUnavailableError("Generation provider unavailable", service="llm") from last_err
        raise GenerationError(f"LLM call failed after retries: {last_err}") from last_err

    async def chat(self, messages: List[Dict[str, str]]) -> str:
        self._check_provider()
        if self.config.provider == "mock":
            last_user = next((m["content"] for m in reversed(messages) if m.get("role") == "user"), "")
            return f"[mock:{self.config.model}] {last_user}"
        return await self._post_chat(messages)

    async def generate_text(self, prompt: str, system: Optional[str] = None) -> str:
        return await self.chat(_messages(prompt, system))

    async def generate_object(self, schema: Type[T], prompt: str, system: Optional[str] = None) -> T:
        """
        Ask the model for a JSON object matching `schema` and validate it.
        One repair round-trip is attempted when the first reply is unusable.
        """
        self._check_provider()
        if self.config.provider == "mock":
            raise NotImplementedError("Structured generation is not yet implemented for the mock provider")

        schema_json = json.dumps(schema.model_json_schema(), ensure_ascii=False)
        structured = STRUCTURED_OUTPUT_SYSTEM.format(schema=schema_json)
        text = await self._post_chat(_messages(prompt, f"{system}\n\n{structured}" if system else structured))
        try:
            return schema.model_validate(extract_json_object(text))
        except ValueError as e:
            # pydantic.ValidationError is a ValueError too
            problem = str(e)
            log.warning(f"Structured output rejected: {_safe_snippet(problem, 200)}. Snippet={_safe_snippet(text)}. Trying repair...")

        repair = REPAIR_USER.format(schema=schema_json, problem=problem, reply=text)
        text2 = await self._post_chat(_messages(repair, REPAIR_SYSTEM))
        try:
            return schema.model_validate(extract_json_object(text2))
        except ValueError as e2:
            raise GenerationError(f"Model output did not match {schema.__name__}: {_safe_snippet(str(e2), 200)}") from e2
