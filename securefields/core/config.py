"""
Configuration
=============

Frozen configuration for the engine's envelope codec and for the optional
logging helpers.

Every value can be overridden from the environment:

    SECUREFIELDS_SECURITY__KDF_ALGORITHM=argon2id
    SECUREFIELDS_SECURITY__KDF_ITERATIONS=800000
    SECUREFIELDS_LOGGING__LEVEL=DEBUG
    SECUREFIELDS_LOGGING__LOG_DIR=/var/log/securefields

Security Features:
- Sections and the loader are immutable once built
- Keys that look like secrets (passphrase, token, ...) are never taken from
  the environment; the passphrase is always passed to the engine directly
- Per-platform default log directory
"""

from __future__ import annotations

import dataclasses
import hashlib
import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Final, Optional

from securefields.core.crypto.kdf import (
    ARGON2_MEMORY_COST,
    ARGON2_PARALLELISM,
    ARGON2_TIME_COST,
    MIN_PBKDF2_ITERATIONS,
    MIN_SALT_LENGTH,
    PBKDF2_ITERATIONS,
    KdfAlgorithm,
)


_SENSITIVE_KEYS: Final[frozenset[str]] = frozenset({
    "password", "passphrase", "secret", "token", "api_key",
    "private", "credential", "auth",
})

_TRUE_STRINGS: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
_LOG_LEVELS: Final[frozenset[str]] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def _is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in _SENSITIVE_KEYS)


def _default_log_dir() -> Path:
    system = platform.system().lower()

    if system == "windows":
        root = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        return root / "SecureFields" / "Logs"
    if system == "darwin":
        return Path.home() / "Library" / "Logs" / "SecureFields"
    state = Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))
    return state / "SecureFields" / "logs"


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in _TRUE_STRINGS


# Keyed by the (postponed) annotation text of a section field
_COERCERS: Final[dict[str, Callable[[str], Any]]] = {
    "bool": _parse_bool,
    "int": int,
    "str": str,
    "Path": Path,
}


@dataclass(frozen=True, slots=True)
class SecurityConfig:
    """
    Key derivation settings used by the default envelope codec.

    Only the settings of the selected ``kdf_algorithm`` are written into new
    envelopes; decryption always follows the parameters an envelope carries.
    """

    kdf_algorithm: str = "pbkdf2-sha256"
    kdf_iterations: int = PBKDF2_ITERATIONS
    salt_length: int = MIN_SALT_LENGTH

    argon2_time_cost: int = ARGON2_TIME_COST
    argon2_memory_cost: int = ARGON2_MEMORY_COST  # KiB
    argon2_parallelism: int = ARGON2_PARALLELISM

    def __post_init__(self) -> None:
        KdfAlgorithm.from_name(self.kdf_algorithm)
        if self.kdf_iterations < MIN_PBKDF2_ITERATIONS:
            raise ValueError(f"KDF iterations must be at least {MIN_PBKDF2_ITERATIONS:,}")
        if self.salt_length < MIN_SALT_LENGTH:
            raise ValueError(f"Salt length must be at least {MIN_SALT_LENGTH} bytes")
        if self.argon2_time_cost < 1:
            raise ValueError("Argon2 time cost must be at least 1")
        if self.argon2_parallelism < 1:
            raise ValueError("Argon2 parallelism must be at least 1")


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Settings for get_secure_logger() and configure_root_logger()."""

    level: str = "INFO"
    max_file_size_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    date_format: str = "%Y-%m-%d %H:%M:%S"
    enable_console: bool = True
    enable_file: bool = False
    log_dir: Path = field(default_factory=_default_log_dir)

    def __post_init__(self) -> None:
        if self.level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.level}")
        if not self.log_dir.is_absolute():
            raise ValueError(f"log_dir must be an absolute path: {self.log_dir}")


class SecureConfig:
    """
    Immutable holder of the security and logging sections.

    Usage:
        config = SecureConfig.load()
        engine = FieldEncryptionEngine(passphrase, config=config)

    Without a config the engine reads only the security section, through
    load_security(), so logging settings never affect encryption.
    """

    __slots__ = ("_security", "_logging", "_frozen", "_config_hash")

    _instance: Optional[SecureConfig] = None

    def __init__(
        self,
        security: Optional[SecurityConfig] = None,
        logging: Optional[LoggingConfig] = None,
    ) -> None:
        # object.__setattr__ until _frozen is set
        object.__setattr__(self, "_frozen", False)
        object.__setattr__(self, "_security", security or SecurityConfig())
        object.__setattr__(self, "_logging", logging or LoggingConfig())
        object.__setattr__(self, "_config_hash", self._compute_hash())
        object.__setattr__(self, "_frozen", True)

    def _compute_hash(self) -> str:
        digest = hashlib.sha256(f"{self._security}|{self._logging}".encode())
        return digest.hexdigest()[:16]

    @property
    def security(self) -> SecurityConfig:
        return self._security

    @property
    def logging(self) -> LoggingConfig:
        return self._logging

    @property
    def config_hash(self) -> str:
        """Short fingerprint of all settings, safe to log."""
        return self._config_hash

    @classmethod
    def load(cls, env_prefix: str = "SECUREFIELDS") -> SecureConfig:
        """
        Build a configuration from defaults and environment overrides.

        Variables are named ``<PREFIX>_<SECTION>__<FIELD>``; unknown names
        are ignored.

        Raises:
            ValueError: If an override has the wrong type or fails validation
        """
        overrides = cls._parse_env_overrides(env_prefix)

        return cls(
            security=cls._section(SecurityConfig, "security", overrides),
            logging=cls._section(LoggingConfig, "logging", overrides),
        )

    @classmethod
    def load_security(cls, env_prefix: str = "SECUREFIELDS") -> SecurityConfig:
        """
        Build only the security section from defaults and environment overrides.

        Logging variables are not read, so a broken logging setup cannot
        prevent an envelope codec from being built.

        Args:
            env_prefix: Prefix for environment variables (default: SECUREFIELDS)

        Returns:
            Validated SecurityConfig

        Raises:
            ValueError: If a security override has the wrong type or fails validation
        """
        overrides = cls._parse_env_overrides(env_prefix)
        return cls._section(SecurityConfig, "security", overrides) or SecurityConfig()

    @staticmethod
    def _section(section_cls: type, section: str, overrides: dict[str, str]) -> Any:
        """Instantiate section_cls with its overridden fields, or None if there are none."""
        kwargs: dict[str, Any] = {}

        for section_field in dataclasses.fields(section_cls):
            key = f"{section}.{section_field.name}"
            if key in overrides:
                kwargs[section_field.name] = _COERCERS[section_field.type](overrides[key])

        return section_cls(**kwargs) if kwargs else None

    @staticmethod
    def _parse_env_overrides(prefix: str) -> dict[str, str]:
        """Map ``PREFIX_SECTION__FIELD`` variables to ``section.field`` keys."""
        head = f"{prefix.upper()}_"
        overrides: dict[str, str] = {}

        for name, value in os.environ.items():
            if not name.startswith(head):
                continue
            key = name[len(head):].lower().replace("__", ".")
            if _is_sensitive_key(key):
                continue
            overrides[key] = value

        return overrides

    @classmethod
    def get_instance(cls) -> SecureConfig:
        """Process-wide configuration, loaded from the environment on first use."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the process-wide configuration so the next call reloads it."""
        cls._instance = None

    def __repr__(self) -> str:
        return f"SecureConfig(hash={self._config_hash}, kdf={self._security.kdf_algorithm})"

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise AttributeError("SecureConfig is immutable after initialization")
        super().__setattr__(name, value)
