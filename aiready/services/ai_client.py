# aiready/services/ai_client.py
"""
LLM providers and the fallback chain used by every analysis operation.

Order: DeepSeek -> Gemini -> OpenAI -> search grounded heuristic -> static.
A provider without an API key is skipped.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

import httpx

from aiready.core import config
from aiready.core.errors import (
    AppError,
    AIModelError,
    ConfigurationError,
    ExternalServiceError,
)
from aiready.services.web_search import google_search

log = logging.getLogger("aiready.ai")

DEFAULT_SYSTEM_PROMPT = (
    "You are an EU AI Act compliance expert that provides accurate, regulatory-focused guidance."
)

PROVIDER_ORDER = ("deepseek", "gemini", "openai")


def _json_body(resp: httpx.Response, model: str) -> Dict[str, Any]:
    try:
        data = resp.json()
    except ValueError as e:
        raise AIModelError(model, f"{model} returned a non-JSON body") from e
    if not isinstance(data, dict):
        raise AIModelError(model, f"{model} returned an unexpected body")
    return data


@dataclass(frozen=True)
class ModelDefaults:
    model: str
    endpoint: str
    temperature: float
    max_tokens: int = 1000


MODEL_DEFAULTS: Dict[str, ModelDefaults] = {
    "deepseek": ModelDefaults(
        model="deepseek-chat",
        endpoint="https://api.deepseek.com/v1/chat/completions",
        temperature=0.2,
    ),
    "gemini": ModelDefaults(
        model="gemini-pro",
        endpoint="https://generativelanguage.googleapis.com/v1beta/models/gemini-pro:generateContent",
        temperature=0.3,
    ),
    "openai": ModelDefaults(
        model="gpt-4",
        endpoint="https://api.openai.com/v1/chat/completions",
        temperature=0.1,
    ),
}


@dataclass
class AIResponse:
    text: str
    model: str
    tokens: Dict[str, int] = field(default_factory=lambda: {"prompt": 0, "completion": 0, "total": 0})


# -----------------------------
# Providers
# -----------------------------
class BaseProvider:
    name = "base"
    label = "AI"

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        client: Optional[httpx.Client] = None,
        defaults: Optional[ModelDefaults] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._api_key = api_key
        self._client = client
        self.defaults = defaults or MODEL_DEFAULTS[self.name]
        self._sleep = sleep

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key or config.provider_api_key(self.name)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=config.ai_request_timeout())
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _require_key(self) -> str:
        key = self.api_key
        if not key:
            raise ConfigurationError(f"{self.label} API key not configured")
        return key

    def _post(self, url: str, *, json: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        try:
            resp = self.client.post(url, json=json, headers=headers)
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(
                self.label,
                f"{self.label} API returned {e.response.status_code}",
                details={"status_code": e.response.status_code, "body": e.response.text[:500]},
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(self.label, f"{self.label} API request failed: {e}") from e

    def complete(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> AIResponse:
        raise NotImplementedError


class ChatCompletionsProvider(BaseProvider):
    """OpenAI style /chat/completions APIs."""

    def _body(self, prompt: str, system_prompt: Optional[str], temperature: Optional[float], max_tokens: Optional[int]):
        return {
            "model": self.defaults.model,
            "messages": [
                {"role": "system", "content": system_prompt or DEFAULT_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.defaults.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.defaults.max_tokens,
        }

    def _send(self, body: Dict[str, Any], key: str) -> httpx.Response:
        return self._post(
            self.defaults.endpoint,
            json=body,
            headers={"Authorization": f"Bearer {key}", "Content-Type": "application/json"},
        )

    def complete(self, prompt, *, system_prompt=None, temperature=None, max_tokens=None) -> AIResponse:
        key = self._require_key()
        resp = self._send(self._body(prompt, system_prompt, temperature, max_tokens), key)
        data = _json_body(resp, self.name)

        choices = data.get("choices") or []
        if not choices:
            raise AIModelError(self.name, f"{self.label} returned no choices")
        text = (choices[0].get("message") or {}).get("content") or ""
        usage = data.get("usage") or {}
        return AIResponse(
            text=text,
            model=self.name,
            tokens={
                "prompt": int(usage.get("prompt_tokens") or 0),
                "completion": int(usage.get("completion_tokens") or 0),
                "total": int(usage.get("total_tokens") or 0),
            },
        )


class DeepSeekProvider(ChatCompletionsProvider):
    name = "deepseek"
    label = "DeepSeek"

    max_retries = 2
    rate_limit_delay = 2.0
    network_retry_delay = 1.0

    def _send(self, body: Dict[str, Any], key: str) -> httpx.Response:
        headers = {"Authorization": f"Bearer {key}", "Content-Type": "application/json"}
        for attempt in range(self.max_retries + 1):
            last = attempt == self.max_retries
            try:
                resp = self.client.post(self.defaults.endpoint, json=body, headers=headers)
            except httpx.TransportError as e:
                if last:
                    raise ExternalServiceError(self.label, f"{self.label} API request failed: {e}") from e
                log.warning("deepseek network error (attempt %s): %s", attempt + 1, e)
                self._sleep(self.network_retry_delay)
                continue

            if resp.status_code == 429 and not last:
                log.warning("deepseek rate limited (attempt %s), backing off", attempt + 1)
                self._sleep(self.rate_limit_delay)
                continue

            try:
                resp.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise ExternalServiceError(
                    self.label,
                    f"{self.label} API returned {resp.status_code}",
                    details={"status_code": resp.status_code, "body": resp.text[:500]},
                ) from e
            return resp

        raise ExternalServiceError(self.label)  # pragma: no cover


class OpenAIProvider(ChatCompletionsProvider):
    name = "openai"
    label = "OpenAI"


class GeminiProvider(BaseProvider):
    name = "gemini"
    label = "Gemini"

    def complete(self, prompt, *, system_prompt=None, temperature=None, max_tokens=None) -> AIResponse:
        key = self._require_key()
        full_prompt = f"{system_prompt or DEFAULT_SYSTEM_PROMPT}\n\n{prompt}"
        body = {
            "contents": [{"parts": [{"text": full_prompt}]}],
            "generationConfig": {
                "temperature": self.defaults.temperature if temperature is None else temperature,
                "maxOutputTokens": max_tokens or self.defaults.max_tokens,
                "topP": 0.9,
                "topK": 40,
            },
        }
        resp = self._post(f"{self.defaults.endpoint}?key={key}", json=body)
        data = _json_body(resp, self.name)

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIModelError(self.name, "Gemini returned no candidates") from e

        # Gemini does not report usage here; ~4 chars per token
        p = math.ceil(len(full_prompt) / 4)
        c = math.ceil(len(text) / 4)
        return AIResponse(text=text, model=self.name, tokens={"prompt": p, "completion": c, "total": p + c})


PROVIDER_CLASSES = {
    "deepseek": DeepSeekProvider,
    "gemini": GeminiProvider,
    "openai": OpenAIProvider,
}


# -----------------------------
# Client with model fallback
# -----------------------------
class AIClient:
    def __init__(self, providers: Optional[Dict[str, BaseProvider]] = None):
        self.providers: Dict[str, BaseProvider] = (
            providers if providers is not None else {n: PROVIDER_CLASSES[n]() for n in PROVIDER_ORDER}
        )

    def order(self, preferred: Optional[str] = None) -> List[str]:
        names = [n for n in PROVIDER_ORDER if n in self.providers]
        if preferred and preferred in names:
            names.remove(preferred)
            names.insert(0, preferred)
        return names

    def available(self, preferred: Optional[str] = None) -> List[str]:
        return [n for n in self.order(preferred) if self.providers[n].configured]

    def close(self) -> None:
        for provider in self.providers.values():
            provider.close()

    def complete(self, prompt: str, *, preferred: Optional[str] = None, **opts: Any) -> AIResponse:
        """First successful provider wins; AIModelError lists every failure."""
        errors: Dict[str, str] = {}
        for name in self.order(preferred):
            provider = self.providers[name]
            try:
                return provider.complete(prompt, **opts)
            except AppError as e:
                log.warning("provider %s failed: %s", name, e.message)
                errors[name] = e.message
        raise AIModelError("all", "All AI models failed", details={"errors": errors})


# -----------------------------
# Full chain: models -> search -> static
# -----------------------------
@dataclass
class ChainResult:
    data: Any
    source: str
    model: Optional[str] = None
    errors: Dict[str, str] = field(default_factory=dict)


SearchFn = Callable[[str], List[Dict[str, Any]]]


class ProviderChain:
    """
    Runs one analysis through the fallback order.

    parse(text) turns a model reply into the result and may raise to reject it.
    fallback(sources) builds the rule based result; sources is the list of
    search hits (empty for the static stage).
    """

    def __init__(self, client: Optional[AIClient] = None, search: Optional[SearchFn] = None):
        self.client = client or AIClient()
        self.search = search or google_search

    def close(self) -> None:
        self.client.close()

    def run(
        self,
        prompt: str,
        *,
        parse: Callable[[str], Any],
        fallback: Callable[[Sequence[Dict[str, Any]]], Any],
        search_query: Optional[str] = None,
        preferred: Optional[str] = None,
        **opts: Any,
    ) -> ChainResult:
        errors: Dict[str, str] = {}

        for name in self.client.available(preferred):
            provider = self.client.providers[name]
            try:
                reply = provider.complete(prompt, **opts)
                data = parse(reply.text)
            except AppError as e:
                log.warning("chain stage %s failed: %s", name, e.message)
                errors[name] = e.message
                continue
            except (ValueError, KeyError, TypeError) as e:
                log.warning("chain stage %s returned unusable output: %s", name, e)
                errors[name] = f"unusable output: {e}"
                continue
            return ChainResult(data=data, source=name, model=reply.model, errors=errors)

        if search_query:
            hits = self.search(search_query)
            if hits:
                log.info("chain using search grounded fallback (%s hits)", len(hits))
                return ChainResult(data=fallback(hits), source="search", errors=errors)
            errors["search"] = "no results"

        log.info("chain using static fallback")
        return ChainResult(data=fallback([]), source="static", errors=errors)


def get_chain() -> Iterator[ProviderChain]:
    """FastAPI dependency; provider HTTP clients are closed after the request."""
    chain = ProviderChain()
    try:
        yield chain
    finally:
        chain.close()
