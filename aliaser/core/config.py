"""
Engine Configuration Module
===========================

Provides immutable, environment-aware configuration with security-first defaults.

Security Features:
- Immutable configuration after initialization
- Environment variable override support (ALIASER_ prefix)
- No secrets in default values, none accepted from the environment
- Key-derivation cost floors enforced at construction
"""

from __future__ import annotations

import hashlib
import os
import platform
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Optional


VAULT_FILE_NAME: Final[str] = ".aliaser.vault"
CONFIG_FILE_NAME: Final[str] = ".aliaser.config"

# Security Constants
_SENSITIVE_KEYS: Final[frozenset[str]] = frozenset({
    "password", "secret", "key", "token", "api_key",
    "private", "credential", "auth", "salt"
})


def _is_sensitive_key(key: str) -> bool:
    """Check if a configuration key might contain sensitive data."""
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in _SENSITIVE_KEYS)


def _get_default_vault_path() -> Path:
    return Path.home() / VAULT_FILE_NAME


def _get_default_config_path() -> Path:
    return Path.home() / CONFIG_FILE_NAME


def _get_default_log_dir() -> Path:
    """Get OS-appropriate default log directory."""
    system = platform.system().lower()

    if system == "windows":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        return base / "Aliaser" / "Logs"
    elif system == "darwin":
        return Path.home() / "Library" / "Logs" / "Aliaser"
    else:  # Linux and others
        return Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state")) / "aliaser" / "logs"


@dataclass(frozen=True, slots=True)
class PathConfig:
    """Locations of the vault file, its config file and the log directory."""

    vault_path: Path = field(default_factory=_get_default_vault_path)
    config_path: Path = field(default_factory=_get_default_config_path)
    log_dir: Path = field(default_factory=_get_default_log_dir)

    def __post_init__(self) -> None:
        """Validate paths after initialization."""
        for field_name in ["vault_path", "config_path", "log_dir"]:
            path = getattr(self, field_name)
            if not isinstance(path, Path):
                object.__setattr__(self, field_name, Path(path))
                path = getattr(self, field_name)
            if not path.is_absolute():
                raise ValueError(f"{field_name} must be an absolute path: {path}")
        if self.vault_path == self.config_path:
            raise ValueError("vault_path and config_path must differ")

    @classmethod
    def in_directory(cls, directory: Path | str) -> PathConfig:
        """Place both vault files (and logs) under one directory."""
        base = Path(directory).resolve()
        return cls(
            vault_path=base / VAULT_FILE_NAME,
            config_path=base / CONFIG_FILE_NAME,
            log_dir=base / "logs",
        )


@dataclass(frozen=True, slots=True)
class KdfConfig:
    """
    Argon2id parameters for deriving the vault encryption key.

    These are stored in the vault config file at init so a vault keeps
    unlocking with the cost it was created with.
    """

    time_cost: int = 3
    memory_cost: int = 65536  # KiB (64 MB)
    parallelism: int = 4
    key_length: int = 32  # 256 bits for AES-256
    salt_length: int = 32

    def __post_init__(self) -> None:
        if self.time_cost < 1:
            raise ValueError("time_cost must be at least 1")
        if self.parallelism < 1:
            raise ValueError("parallelism must be at least 1")
        # Argon2 itself requires at least 8 KiB per lane
        if self.memory_cost < 8 * self.parallelism:
            raise ValueError("memory_cost must be at least 8 KiB per lane")
        if self.key_length != 32:
            raise ValueError("key_length must be 32 bytes for AES-256")
        if self.salt_length < 16:
            raise ValueError("Salt length must be at least 16 bytes")

    def to_dict(self) -> dict[str, int]:
        return {
            "time_cost": self.time_cost,
            "memory_cost": self.memory_cost,
            "parallelism": self.parallelism,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KdfConfig:
        return cls(
            time_cost=int(data["time_cost"]),
            memory_cost=int(data["memory_cost"]),
            parallelism=int(data["parallelism"]),
        )


@dataclass(frozen=True, slots=True)
class HasherConfig:
    """Argon2id parameters for the master-password verification hash."""

    time_cost: int = 2
    memory_cost: int = 102400  # KiB (100 MB)
    parallelism: int = 4
    hash_length: int = 32
    salt_length: int = 16

    def __post_init__(self) -> None:
        if self.time_cost < 1:
            raise ValueError("time_cost must be at least 1")
        if self.parallelism < 1:
            raise ValueError("parallelism must be at least 1")
        if self.memory_cost < 8 * self.parallelism:
            raise ValueError("memory_cost must be at least 8 KiB per lane")
        if self.hash_length < 16:
            raise ValueError("hash_length must be at least 16 bytes")
        if self.salt_length < 8:
            raise ValueError("salt_length must be at least 8 bytes")


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Immutable logging configuration."""

    level: str = "INFO"
    max_file_size_bytes: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    enable_console: bool = True
    enable_file: bool = False
    enable_json: bool = False

    def __post_init__(self) -> None:
        """Validate logging settings."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {self.level}")


class AliaserConfig:
    """
    Centralized, immutable configuration loader with environment override support.

    Usage:
        config = AliaserConfig.load()
        vault_path = config.paths.vault_path
        memory_cost = config.kdf.memory_cost
    """

    __slots__ = ("_paths", "_kdf", "_hasher", "_logging", "_frozen", "_config_hash")

    def __init__(
        self,
        paths: Optional[PathConfig] = None,
        kdf: Optional[KdfConfig] = None,
        hasher: Optional[HasherConfig] = None,
        logging: Optional[LoggingConfig] = None,
    ) -> None:
        """Initialize configuration. Use AliaserConfig.load() for standard initialization."""
        object.__setattr__(self, "_frozen", False)
        object.__setattr__(self, "_paths", paths or PathConfig())
        object.__setattr__(self, "_kdf", kdf or KdfConfig())
        object.__setattr__(self, "_hasher", hasher or HasherConfig())
        object.__setattr__(self, "_logging", logging or LoggingConfig())
        object.__setattr__(self, "_config_hash", self._compute_hash())
        object.__setattr__(self, "_frozen", True)

    def _compute_hash(self) -> str:
        """Compute a short fingerprint of the configuration."""
        config_str = f"{self._paths}|{self._kdf}|{self._hasher}|{self._logging}"
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @property
    def paths(self) -> PathConfig:
        return self._paths

    @property
    def kdf(self) -> KdfConfig:
        return self._kdf

    @property
    def hasher(self) -> HasherConfig:
        return self._hasher

    @property
    def logging(self) -> LoggingConfig:
        return self._logging

    @property
    def config_hash(self) -> str:
        return self._config_hash

    @classmethod
    def load(cls, env_prefix: str = "ALIASER") -> AliaserConfig:
        """
        Load configuration with environment variable overrides.

        Environment variables are prefixed with ALIASER_ and use
        double underscores for nested values.

        Examples:
            ALIASER_LOGGING__LEVEL=DEBUG
            ALIASER_PATHS__VAULT_PATH=/custom/vault
            ALIASER_KDF__MEMORY_COST=131072

        Args:
            env_prefix: Prefix for environment variables (default: ALIASER)

        Returns:
            Configured AliaserConfig instance
        """
        env_overrides = cls._parse_env_overrides(env_prefix)

        paths_kwargs: dict[str, Any] = {}
        for name in ("vault_path", "config_path", "log_dir"):
            if f"paths.{name}" in env_overrides:
                paths_kwargs[name] = Path(env_overrides[f"paths.{name}"]).expanduser()

        kdf_kwargs: dict[str, Any] = {}
        for name in ("time_cost", "memory_cost", "parallelism"):
            if f"kdf.{name}" in env_overrides:
                kdf_kwargs[name] = int(env_overrides[f"kdf.{name}"])

        logging_kwargs: dict[str, Any] = {}
        if "logging.level" in env_overrides:
            logging_kwargs["level"] = env_overrides["logging.level"]
        for name in ("enable_console", "enable_file", "enable_json"):
            if f"logging.{name}" in env_overrides:
                logging_kwargs[name] = env_overrides[f"logging.{name}"].lower() == "true"

        return cls(
            paths=PathConfig(**paths_kwargs) if paths_kwargs else None,
            kdf=KdfConfig(**kdf_kwargs) if kdf_kwargs else None,
            logging=LoggingConfig(**logging_kwargs) if logging_kwargs else None,
        )

    @staticmethod
    def _parse_env_overrides(prefix: str) -> dict[str, str]:
        """Parse environment variables with the given prefix."""
        overrides: dict[str, str] = {}
        prefix_upper = f"{prefix.upper()}_"

        for key, value in os.environ.items():
            if key.startswith(prefix_upper):
                # ALIASER_SECTION__KEY -> section.key
                config_key = key[len(prefix_upper):].lower().replace("__", ".")

                # SECURITY: Skip sensitive keys from environment
                if _is_sensitive_key(config_key):
                    continue

                overrides[config_key] = value

        return overrides

    def ensure_directories(self) -> None:
        """Create the directories holding the vault files with owner-only permissions."""
        directories = {
            self._paths.vault_path.parent,
            self._paths.config_path.parent,
        }
        if self._logging.enable_file:
            directories.add(self._paths.log_dir)

        for directory in directories:
            if directory.exists():
                continue
            directory.mkdir(parents=True, exist_ok=True)

            if platform.system().lower() != "windows":
                directory.chmod(stat.S_IRWXU)  # 700 - owner only

    def __repr__(self) -> str:
        """Safe string representation without sensitive data."""
        return f"AliaserConfig(hash={self._config_hash}, vault={self._paths.vault_path})"

    def __setattr__(self, name: str, value: Any) -> None:
        """Prevent modification after initialization."""
        if getattr(self, "_frozen", False):
            raise AttributeError("AliaserConfig is immutable after initialization")
        super().__setattr__(name, value)
