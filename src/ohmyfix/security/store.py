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
OhMyFix -- Secure Credential Store (v1.1.0)

Stores provider API keys with layered backends:

  1. OS Keyring (primary)  -- Windows Credential Locker / macOS Keychain / Linux SecretService
  2. Encrypted File (fallback) -- Fernet with a PBKDF2-derived, machine-bound key

Keys are never written to disk in plaintext. Access goes through the
thread-safe get_secure_store() singleton.
"""

import base64
import getpass
import hashlib
import json
import logging
import os
import platform
import threading
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
import keyring
from keyring.errors import KeyringError

logger = logging.getLogger("ohmyfix.security.store")

DEFAULT_STORE_DIR = Path.home() / ".ohmyfix" / "security"


class SecureStoreError(RuntimeError):
    """No secure backend could store the credential."""


# =============================================================================
# Encryption Backend (Fernet -- AES-128-CBC + HMAC-SHA256 via PBKDF2)
# =============================================================================


class _FernetBackend:
    """
    Encrypted vault file.

    Key derivation: PBKDF2-HMAC-SHA256 with 600,000 iterations from a
    machine-unique seed and a per-install salt.
    """

    def __init__(self, store_dir: Path):
        self._store_dir = store_dir
        self._vault_path = store_dir / "vault.enc"
        self._salt_path = store_dir / "vault.salt"
        self._fernet: Fernet | None = None
        self._available = False
        self._init_fernet()

    def _init_fernet(self):
        try:
            if not self._salt_path.exists():
                self._store_dir.mkdir(parents=True, exist_ok=True)
                self._salt_path.write_bytes(os.urandom(32))
            salt = self._salt_path.read_bytes()

            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=32,
                salt=salt,
                iterations=600_000,
            )
            key = base64.urlsafe_b64encode(kdf.derive(self._get_machine_seed()))
            self._fernet = Fernet(key)
            self._available = True
        except OSError as e:
            logger.warning("Failed to initialize encrypted file backend: %s", e)

    @property
    def available(self) -> bool:
        return self._available

    def _get_machine_seed(self) -> bytes:
        """Username + hostname + machine-id (Linux), tying the key to this machine."""
        parts = [getpass.getuser(), platform.node()]
        if platform.system() == "Linux":
            for path in ["/etc/machine-id", "/var/lib/dbus/machine-id"]:
                try:
                    parts.append(Path(path).read_text().strip())
                    break
                except OSError:
                    pass
        return hashlib.sha256("|".join(parts).encode()).digest()

    def _load_vault(self) -> dict[str, str]:
        if not self._vault_path.exists():
            return {}
        try:
            return json.loads(self._fernet.decrypt(self._vault_path.read_bytes()).decode())
        except (InvalidToken, OSError, ValueError) as e:
            logger.error("Failed to decrypt vault: %s", e)
            return {}

    def _save_vault(self, data: dict[str, str]):
        self._store_dir.mkdir(parents=True, exist_ok=True)
        self._vault_path.write_bytes(self._fernet.encrypt(json.dumps(data).encode()))

    def get(self, provider: str) -> str | None:
        return self._load_vault().get(provider)

    def set(self, provider: str, value: str):
        vault = self._load_vault()
        vault[provider] = value
        self._save_vault(vault)

    def delete(self, provider: str) -> bool:
        vault = self._load_vault()
        if provider in vault:
            del vault[provider]
            self._save_vault(vault)
            return True
        return False

    def list_providers(self) -> list[str]:
        return list(self._load_vault().keys())


# =============================================================================
# Keyring Backend
# =============================================================================


class _KeyringBackend:
    """OS keyring backend using the `keyring` library."""

    SERVICE_NAME = "ohmyfix"

    def __init__(self):
        self._available = False
        try:
            backend_name = str(keyring.get_keyring())
        except KeyringError as e:
            logger.debug("Keyring init failed: %s", e)
            return
        # fail/null backends accept nothing
        if "fail" in backend_name.lower() or "null" in backend_name.lower():
            logger.debug("Keyring backend is non-functional: %s", backend_name)
            return
        self._available = True
        logger.debug("Keyring backend active: %s", backend_name)

    @property
    def available(self) -> bool:
        return self._available

    def get(self, provider: str) -> str | None:
        try:
            return keyring.get_password(self.SERVICE_NAME, provider)
        except KeyringError as e:
            logger.warning("Keyring get failed for %s: %s", provider, e)
            return None

    def set(self, provider: str, value: str):
        keyring.set_password(self.SERVICE_NAME, provider, value)

    def delete(self, provider: str) -> bool:
        try:
            keyring.delete_password(self.SERVICE_NAME, provider)
            return True
        except KeyringError as e:
            logger.debug("Keyring delete failed for %s: %s", provider, e)
            return False


# =============================================================================
# Secure Store (Public API)
# =============================================================================


class SecureStore:
    """
    Layered credential store.

    Backend priority:
      1. OS Keyring (if available and functional)
      2. Encrypted File (Fernet + PBKDF2)
      3. Error -- refuses to store in plaintext

    Usage:
        store = get_secure_store()
        store.set_key("google", "AIza...")
        key = store.get_key("google")
    """

    def __init__(self, store_dir: Path | None = None):
        self._store_dir = store_dir or DEFAULT_STORE_DIR
        self._store_dir.mkdir(parents=True, exist_ok=True)
        self._meta_path = self._store_dir / "credentials.meta.json"
        self._lock = threading.Lock()

        self._keyring = _KeyringBackend()
        self._fernet = _FernetBackend(self._store_dir)
        self._meta: dict[str, str] = self._load_meta()  # provider -> backend name

    @property
    def backend_name(self) -> str:
        if self._keyring.available:
            return "keyring"
        if self._fernet.available:
            return "encrypted_file"
        return "none"

    @property
    def is_available(self) -> bool:
        return self._keyring.available or self._fernet.available

    def get_key(self, provider: str) -> str | None:
        """Retrieve a stored credential by provider name."""
        with self._lock:
            for _name, backend in self._backends(prefer=self._meta.get(provider)):
                value = backend.get(provider)
                if value:
                    return value
            return None

    def set_key(self, provider: str, value: str) -> str:
        """Store a credential. Returns the backend name used."""
        with self._lock:
            for name, backend in self._backends():
                try:
                    backend.set(provider, value)
                except (KeyringError, OSError) as e:
                    logger.warning("Backend %s could not store %s: %s", name, provider, e)
                    continue
                self._meta[provider] = name
                self._save_meta()
                logger.info("Stored credential for %s in %s", provider, name)
                return name
        raise SecureStoreError(
            "No secure storage backend available. Install a keyring backend, "
            f"or set {provider.upper()}_API_KEY in your environment."
        )

    def delete_key(self, provider: str) -> bool:
        with self._lock:
            deleted = False
            for _name, backend in self._backends():
                deleted = backend.delete(provider) or deleted
            if self._meta.pop(provider, None) is not None:
                self._save_meta()
            return deleted

    def has_key(self, provider: str) -> bool:
        return self.get_key(provider) is not None

    def list_providers(self) -> list[str]:
        with self._lock:
            providers = set(self._meta)
            if self._fernet.available:
                providers.update(self._fernet.list_providers())
            return sorted(providers)

    def get_status(self) -> dict:
        return {
            "backend": self.backend_name,
            "available": self.is_available,
            "providers": self.list_providers(),
        }

    # =========================================================================
    # INTERNAL
    # =========================================================================

    def _backends(self, prefer: str | None = None):
        backends = []
        if self._keyring.available:
            backends.append(("keyring", self._keyring))
        if self._fernet.available:
            backends.append(("encrypted_file", self._fernet))
        if prefer:
            backends.sort(key=lambda item: item[0] != prefer)
        return backends

    def _load_meta(self) -> dict[str, str]:
        if not self._meta_path.exists():
            return {}
        try:
            return json.loads(self._meta_path.read_text())
        except (OSError, ValueError):
            return {}

    def _save_meta(self):
        self._meta_path.write_text(json.dumps(self._meta, indent=2))


# =============================================================================
# Singleton
# =============================================================================

_instance: SecureStore | None = None
_instance_lock = threading.Lock()


def get_secure_store(store_dir: Path | None = None) -> SecureStore:
    """Get or create the SecureStore singleton."""
    global _instance
    with _instance_lock:
        if _instance is None:
            _instance = SecureStore(store_dir=store_dir)
        return _instance
