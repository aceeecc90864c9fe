# OhMyFix
# Copyright (C) 2025 Phoenix Link (Pty) Ltd. All Rights Reserved.
#
# This file is part of OhMyFix.
#
# OhMyFix is dual-licensed:
#
# 1. Open Source: GNU Affero General Public License v3.0 (AGPL-3.0)
#    You may use, modify, and distribute this file under AGPL-3.0.
#    See LICENSE for the full text.
#
# 2. Commercial: Available from Phoenix Link (Pty) Ltd
#    For proprietary use, SaaS deployment, or enterprise licensing.
#    See LICENSE-ENTERPRISE.md or contact info@phoenixlink.co.za
#
# Contributions require a signed CLA. See COPYRIGHT.md and CLA.md.
"""
OhMyFix -- LLM Provider Routing (v1.1.0)

Unified async call_provider() entry point over httpx.

Supports: Google Gemini, OpenAI, Anthropic, Groq (OpenAI-compatible),
          and local Ollama.

Failures surface as ProviderError so a review can report the file it
was working on and move on to the next one.
"""

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable

import httpx

from ohmyfix.core.llm.config import PROVIDERS, ModelConfig

logger = logging.getLogger("ohmyfix.llm.providers")

# ── Retry configuration ──────────────────────────────────────────────────

API_MAX_RETRIES = 3
API_RETRY_DELAY_SECONDS = 2
API_TIMEOUT = 120

_RETRYABLE_KEYWORDS = [
    "timeout",
    "connection",
    "rate limit",
    "temporarily unavailable",
    "overloaded",
]

# ── OpenAI-compatible providers ──────────────────────────────────────────

_OPENAI_COMPATIBLE = {
    "groq": {
        "base_url": "https://api.groq.com/openai/v1",
        "key_name": "groq",
        "display": "Groq",
    },
}

OLLAMA_BASE_URL = os.environ.get("OHMYFIX_OLLAMA_URL", "http://localhost:11434")
OLLAMA_TIMEOUT = 300


class ProviderError(RuntimeError):
    """A model call could not produce a reply."""


# ── Key retrieval helper ─────────────────────────────────────────────────


def _get_key(provider: str) -> str | None:
    """Retrieve credential: SecureStore API key -> env var."""
    try:
        from ohmyfix.security.store import get_secure_store

        key = get_secure_store().get_key(provider)
        if key:
            return key
    except Exception as e:
        logger.debug("SecureStore unavailable: %s", e)

    return os.environ.get(f"{provider.upper()}_API_KEY") or None


# ── Async retry wrapper ──────────────────────────────────────────────────


async def retry_api_call(
    func: Callable[[], Awaitable[str]],
    max_retries: int = API_MAX_RETRIES,
    delay_seconds: float = API_RETRY_DELAY_SECONDS,
    component: str = "api",
) -> str:
    """Retry an async API call with exponential backoff."""
    last_error: Exception | None = None

    attempts_made = 0
    for attempt in range(max_retries):
        attempts_made = attempt + 1
        try:
            return await func()
        except httpx.HTTPStatusError as e:
            last_error = e
            status = e.response.status_code

            # Auth errors are never retried
            if status in (401, 403):
                logger.error("[%s] Auth error %d (not retrying)", component, status)
                raise ProviderError(
                    "API key is invalid or expired. Run: ohmyfix setup"
                ) from e

            if status == 404:
                logger.error("[%s] Resource not found: %s", component, str(e)[:200])
                raise ProviderError(f"Model or endpoint not found (404): {str(e)[:150]}") from e

            # Server errors may be transient
            if status in (429, 500, 502, 503) and attempt < max_retries - 1:
                wait_time = delay_seconds * (2**attempt)
                logger.warning(
                    "[%s] Retrying in %.1fs (HTTP %d, attempt %d/%d)",
                    component,
                    wait_time,
                    status,
                    attempts_made,
                    max_retries,
                )
                await asyncio.sleep(wait_time)
                continue

            logger.error(
                "[%s] HTTP %d after %d attempt(s): %s",
                component,
                status,
                attempts_made,
                str(e)[:200],
            )
            break

        except (httpx.TransportError, KeyError, IndexError, ValueError) as e:
            last_error = e
            error_str = f"{type(e).__name__} {e}".lower()
            retryable = isinstance(e, httpx.TransportError) or any(
                kw in error_str for kw in _RETRYABLE_KEYWORDS
            )

            if not retryable or attempt >= max_retries - 1:
                logger.error(
                    "[%s] API call failed after %d attempt(s): %s",
                    component,
                    attempts_made,
                    str(e)[:200],
                )
                break

            wait_time = delay_seconds * (2**attempt)
            logger.warning(
                "[%s] Retrying in %.1fs (attempt %d/%d): %s",
                component,
                wait_time,
                attempts_made,
                max_retries,
                str(e)[:100],
            )
            await asyncio.sleep(wait_time)

    raise ProviderError(f"API error after {attempts_made} attempt(s): {last_error}") from last_error


# ── Provider-specific callers ────────────────────────────────────────────


async def _call_ollama(
    model: str,
    system_prompt: str,
    user_prompt: str,
    max_tokens: int = 4000,
    temperature: float = 0.2,
) -> str:
    """Call a local Ollama model (non-streaming)."""
    url = f"{OLLAMA_BASE_URL}/api/chat"
    payload = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "stream": False,
        "options": {"num_predict": max_tokens, "temperature": temperature},
    }
    async with httpx.AsyncClient(timeout=OLLAMA_TIMEOUT) as client:
        resp = await client.post(url, json=payload)
        resp.raise_for_status()
        return resp.json().get("message", {}).get("content", "")


async def _call_openai(
    model: str,
    system_prompt: str,
    user_prompt: str,
    api_key: str,
    max_tokens: int = 8000,
    temperature: float = 0.2,
    base_url: str = "https://api.openai.com/v1",
) -> str:
    """Call OpenAI or any OpenAI-compatible provider."""
    headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
    payload = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    async with httpx.AsyncClient(timeout=API_TIMEOUT) as client:
        resp = await client.post(f"{base_url}/chat/completions", headers=headers, json=payload)
        resp.raise_for_status()
        data = resp.json()
        return data["choices"][0]["message"]["content"]


async def _call_anthropic(
    model: str,
    system_prompt: str,
    user_prompt: str,
    api_key: str,
    max_tokens: int = 8000,
) -> str:
    """Call Anthropic Claude API."""
    headers = {
        "x-api-key": api_key,
        "anthropic-version": "2023-06-01",
        "Content-Type": "application/json",
    }
    payload = {
        "model": model,
        "max_tokens": max_tokens,
        "system": system_prompt,
        "messages": [{"role": "user", "content": user_prompt}],
    }
    async with httpx.AsyncClient(timeout=API_TIMEOUT) as client:
        resp = await client.post(
            "https://api.anthropic.com/v1/messages", headers=headers, json=payload
        )
        resp.raise_for_status()
        data = resp.json()
        return data["content"][0]["text"]


async def _call_google(
    model: str,
    system_prompt: str,
    user_prompt: str,
    api_key: str,
    max_tokens: int = 8000,
    temperature: float = 0.2,
) -> str:
    """Call Google Gemini API via REST (API key auth)."""
    url = f"https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
    headers = {"Content-Type": "application/json", "x-goog-api-key": api_key}
    payload = {
        "contents": [{"parts": [{"text": f"{system_prompt}\n\n{user_prompt}"}]}],
        "generationConfig": {"maxOutputTokens": max_tokens, "temperature": temperature},
    }
    async with httpx.AsyncClient(timeout=API_TIMEOUT) as client:
        resp = await client.post(url, json=payload, headers=headers)
        resp.raise_for_status()
        data = resp.json()
        return data["candidates"][0]["content"]["parts"][0]["text"]


# ── Unified call_provider ────────────────────────────────────────────────


def _require_key(provider: str) -> str:
    api_key = _get_key(provider)
    if not api_key:
        name = PROVIDERS.get(provider, {}).get("name", provider)
        raise ProviderError(
            f"{name} API key not configured. Run `ohmyfix setup` or set "
            f"{provider.upper()}_API_KEY."
        )
    return api_key


async def call_provider(
    model_config: ModelConfig,
    system_prompt: str,
    user_prompt: str,
    max_tokens: int = 8000,
    component: str = "provider",
    temperature: float = 0.2,
) -> str:
    """
    Async unified entry point for all LLM calls.

    Args:
        model_config: Provider and model to use
        system_prompt: System message
        user_prompt: User message
        max_tokens: Maximum tokens to generate
        component: Component name for logging
        temperature: Sampling temperature

    Returns:
        str: Model response text

    Raises:
        ProviderError: unknown provider, missing key, or the call failed
    """
    provider = model_config.provider
    model = model_config.model

    logger.info(
        "[%s] Calling %s/%s (prompt=%d chars)", component, provider, model, len(user_prompt)
    )

    if provider == "ollama":

        async def _do():
            return await _call_ollama(model, system_prompt, user_prompt, max_tokens, temperature)

    elif provider == "openai":
        api_key = _require_key("openai")

        async def _do():
            return await _call_openai(
                model, system_prompt, user_prompt, api_key, max_tokens, temperature
            )

    elif provider == "anthropic":
        api_key = _require_key("anthropic")

        async def _do():
            return await _call_anthropic(model, system_prompt, user_prompt, api_key, max_tokens)

    elif provider == "google":
        api_key = _require_key("google")

        async def _do():
            return await _call_google(
                model, system_prompt, user_prompt, api_key, max_tokens, temperature
            )

    elif provider in _OPENAI_COMPATIBLE:
        cfg = _OPENAI_COMPATIBLE[provider]
        api_key = _require_key(cfg["key_name"])

        async def _do():
            return await _call_openai(
                model, system_prompt, user_prompt, api_key, max_tokens, temperature, cfg["base_url"]
            )

    else:
        raise ProviderError(f"Unknown provider: {provider}")

    return await retry_api_call(_do, component=component)
