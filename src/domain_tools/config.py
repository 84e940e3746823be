from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from resolution.errors import DomainToolsError
from resolution.lookup import RESOLVERS


class ConfigError(DomainToolsError, ValueError):
    """Raised when an environment variable or flag holds an unusable value."""


ENV_PREFIX = "DOMAINTOOLS_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _getenv(env: Mapping[str, str], name: str, default: str) -> str:
    return env.get(ENV_PREFIX + name, default).strip()


def _getenv_float(env: Mapping[str, str], name: str, default: float) -> float:
    v = _getenv(env, name, str(default))
    try:
        return float(v)
    except ValueError as err:
        raise ConfigError(f"Environment variable {ENV_PREFIX}{name} must be a number; got {v!r}") from err


def _getenv_int(env: Mapping[str, str], name: str, default: int) -> int:
    v = _getenv(env, name, str(default))
    try:
        return int(v)
    except ValueError as err:
        raise ConfigError(f"Environment variable {ENV_PREFIX}{name} must be an integer; got {v!r}") from err


def _getenv_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(ENV_PREFIX + name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ConfigError(f"Environment variable {ENV_PREFIX}{name} must be a boolean; got {raw!r}")


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    """
    Deployment-level configuration. Immutable; handed to the tools explicitly.

    timeout bounds each resolve_hostname call (both families share it).
    """

    timeout: float = 5.0
    resolver: str = "system"
    concurrent_lookups: bool = True
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.timeout > 0:
            raise ConfigError(f"timeout must be a positive number of seconds; got {self.timeout!r}")
        if self.resolver not in RESOLVERS:
            raise ConfigError(f"resolver must be one of {sorted(RESOLVERS)}; got {self.resolver!r}")
        if not 0 < self.port < 65536:
            raise ConfigError(f"port must be between 1 and 65535; got {self.port!r}")
        # Same names for logging.basicConfig and uvicorn's log_level.
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"log level must be one of {list(LOG_LEVELS)}; got {self.log_level!r}")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, **overrides: Any) -> "Settings":
        """
        Build settings from DOMAINTOOLS_* variables.

        Keyword overrides (CLI flags) win over the environment; None means "flag
        not given". An overridden variable is never parsed, so a bad value in the
        environment can be corrected from the command line.
        """
        env = os.environ if env is None else env
        given = {k: v for k, v in overrides.items() if v is not None}

        def pick(name: str, read: Callable[[], Any]) -> Any:
            return given[name] if name in given else read()

        return cls(
            timeout=pick("timeout", lambda: _getenv_float(env, "TIMEOUT", cls.timeout)),
            resolver=pick("resolver", lambda: _getenv(env, "RESOLVER", cls.resolver).lower()),
            concurrent_lookups=pick(
                "concurrent_lookups", lambda: _getenv_bool(env, "CONCURRENT_LOOKUPS", cls.concurrent_lookups)
            ),
            host=pick("host", lambda: _getenv(env, "HOST", cls.host)),
            port=pick("port", lambda: _getenv_int(env, "PORT", cls.port)),
            log_level=pick("log_level", lambda: _getenv(env, "LOG_LEVEL", cls.log_level)).upper(),
        )
