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
OhMyFix -- Model Configuration (v1.1.0)

Users choose one model that reviews their code. The model can come from
any supported provider:
  - google, openai, anthropic, groq (API key)
  - ollama (local, no key)
"""

import os
import json
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, asdict


# =============================================================================
# SUPPORTED PROVIDERS
# =============================================================================

PROVIDERS = {
    "google": {
        "name": "Google Gemini",
        "auth": "api_key",
        "key_prefix": "AI",
        "models": [
            {"id": "gemini-2.5-pro", "label": "Gemini 2.5 Pro", "context": 1048576},
            {"id": "gemini-2.5-flash", "label": "Gemini 2.5 Flash", "context": 1048576},
            {"id": "gemini-2.5-flash-lite", "label": "Gemini 2.5 Flash-Lite", "context": 1048576},
            {"id": "gemini-2.0-flash", "label": "Gemini 2.0 Flash", "context": 1048576},
            {"id": "gemini-1.5-pro", "label": "Gemini 1.5 Pro", "context": 2097152},
            {"id": "gemini-1.5-flash", "label": "Gemini 1.5 Flash", "context": 1048576},
        ],
        "default": "gemini-2.5-flash",
        "cost": "free_tier",
    },
    "openai": {
        "name": "OpenAI",
        "auth": "api_key",
        "key_prefix": "sk-",
        "models": [
            {"id": "gpt-4.1", "label": "GPT-4.1", "context": 1000000},
            {"id": "gpt-4.1-mini", "label": "GPT-4.1 Mini", "context": 1000000},
            {"id": "gpt-4o", "label": "GPT-4o", "context": 128000},
            {"id": "gpt-4o-mini", "label": "GPT-4o Mini", "context": 128000},
            {"id": "gpt-3.5-turbo", "label": "GPT-3.5 Turbo", "context": 16385},
        ],
        "default": "gpt-4o-mini",
        "cost": "paid",
    },
    "anthropic": {
        "name": "Anthropic",
        "auth": "api_key",
        "key_prefix": "sk-ant-",
        "models": [
            {"id": "claude-sonnet-4-20250514", "label": "Claude Sonnet 4", "context": 200000},
            {"id": "claude-3-7-sonnet-20250219", "label": "Claude 3.7 Sonnet", "context": 200000},
            {"id": "claude-3-5-haiku-20241022", "label": "Claude 3.5 Haiku", "context": 200000},
        ],
        "default": "claude-3-5-haiku-20241022",
        "cost": "paid",
    },
    "groq": {
        "name": "Groq",
        "auth": "api_key",
        "key_prefix": "gsk_",
        "models": [
            {"id": "llama-3.3-70b-versatile", "label": "Llama 3.3 70B", "context": 131072},
            {"id": "llama-3.1-8b-instant", "label": "Llama 3.1 8B Instant", "context": 131072},
        ],
        "default": "llama-3.3-70b-versatile",
        "cost": "free_tier",
    },
    "ollama": {
        "name": "Ollama (Local)",
        "auth": "none",
        "key_prefix": "",
        "models": [
            {"id": "qwen2.5-coder:14b", "label": "Qwen 2.5 Coder 14B", "context": 32768},
            {"id": "qwen2.5-coder:7b", "label": "Qwen 2.5 Coder 7B", "context": 32768},
            {"id": "deepseek-coder-v2:16b", "label": "DeepSeek Coder V2 16B", "context": 128000},
            {"id": "codellama:13b", "label": "Code Llama 13B", "context": 16384},
        ],
        "default": "qwen2.5-coder:7b",
        "cost": "free",
    },
}


def get_model_ids(provider: str) -> list:
    p = PROVIDERS.get(provider, {})
    return [m["id"] for m in p.get("models", [])]


def requires_api_key(provider: str) -> bool:
    return PROVIDERS.get(provider, {}).get("auth") == "api_key"


def validate_api_key(provider: str, key: str) -> Optional[str]:
    """Return an error message if ``key`` cannot be a key for ``provider``."""
    if not key or not key.strip():
        return "API key must not be empty"
    prefix = PROVIDERS.get(provider, {}).get("key_prefix", "")
    if prefix and not key.strip().startswith(prefix):
        name = PROVIDERS[provider]["name"]
        return f'Please enter a valid {name} API key starting with "{prefix}"'
    return None


# =============================================================================
# MODEL CONFIGURATION
# =============================================================================

@dataclass
class ModelConfig:
    """The provider and model that review code."""
    provider: str = "google"
    model: str = "gemini-2.5-flash"

    def validate(self) -> List[str]:
        errors = []
        if self.provider not in PROVIDERS:
            errors.append(f"Unknown provider: {self.provider}. Supported: {list(PROVIDERS.keys())}")
        elif self.model not in get_model_ids(self.provider) and self.provider != "ollama":
            errors.append(f"Unknown model '{self.model}' for {self.provider}.")
        return errors

    def summary(self) -> str:
        lines = [f"Reviewer: {self.provider}/{self.model}"]
        if requires_api_key(self.provider):
            lines.append(f"API key needed: {self.provider}")
        else:
            lines.append("API key needed: none (fully local)")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelConfig":
        return cls(
            provider=data.get("provider", "google"),
            model=data.get("model", "gemini-2.5-flash"),
        )

    @classmethod
    def for_provider(cls, provider: str) -> "ModelConfig":
        """Config using the provider's default model."""
        return cls(provider=provider, model=PROVIDERS.get(provider, {}).get("default", ""))


# =============================================================================
# PRESET CONFIGURATIONS
# =============================================================================

PRESETS = {
    "google_free": ModelConfig(provider="google", model="gemini-2.5-flash"),
    "local_free": ModelConfig(provider="ollama", model="qwen2.5-coder:7b"),
    "openai_budget": ModelConfig(provider="openai", model="gpt-4o-mini"),
    "anthropic_fast": ModelConfig(provider="anthropic", model="claude-3-5-haiku-20241022"),
    "groq_fast": ModelConfig(provider="groq", model="llama-3.3-70b-versatile"),
}


# =============================================================================
# PERSISTENCE
# =============================================================================

CONFIG_FILE = Path.home() / ".ohmyfix" / "model_config.json"


def load_model_config() -> ModelConfig:
    """Load model configuration from disk, or return default."""
    if CONFIG_FILE.exists():
        try:
            with open(CONFIG_FILE, "r") as f:
                data = json.load(f)
            cfg = ModelConfig.from_dict(data)
            if not cfg.validate():
                return cfg
        except (OSError, ValueError):
            pass

    use_local = os.environ.get("OHMYFIX_USE_LOCAL_MODELS", "false").lower() in ("true", "1", "yes")
    if use_local:
        return PRESETS["local_free"]
    return PRESETS["google_free"]


def save_model_config(cfg: ModelConfig) -> bool:
    """Save model configuration to disk."""
    if cfg.validate():
        return False
    try:
        CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
        with open(CONFIG_FILE, "w") as f:
            json.dump(cfg.to_dict(), f, indent=2)
        return True
    except OSError:
        return False


def apply_preset(preset_name: str) -> Optional[ModelConfig]:
    """Apply a named preset. Returns the config or None if invalid."""
    cfg = PRESETS.get(preset_name)
    if cfg:
        save_model_config(cfg)
    return cfg
