"""Configuration loading for the Testomat.io reporter.

All settings come from environment variables and are read once, when
``ReporterConfig.from_env()`` is called. Nothing is re-read afterwards.

Environment Variables:
    TESTOMATIO               API key. Absent or empty disables reporting.
    TESTOMATIO_URL           Service host (default: https://app.testomat.io)
    TESTOMATIO_TITLE         Run title, overrides any title hint
    TESTOMATIO_RUN           Existing run uid to report into
    TESTOMATIO_RUN_SCOPE     "session" (one run per process) or "module"
    TESTOMATIO_RAISE_ERRORS  "1"/"true" to let reporting failures propagate
    TESTOMATIO_TIMEOUT       Request timeout in seconds

Example:
    TESTOMATIO=tstmt_xxxxxxxx
    TESTOMATIO_RUN_SCOPE=module
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

API_KEY_VAR = "TESTOMATIO"
DEFAULT_SERVICE_URL = "https://app.testomat.io"
REPORTER_PATH = "/api/reporter"

RUN_SCOPES = ("session", "module")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"", "0", "false", "no", "off"}


class ConfigError(Exception):
    """Raised when an environment variable holds a malformed value."""

    pass


@dataclass(frozen=True)
class ReporterConfig:
    """Settings for one reporting process."""

    api_key: Optional[str] = None
    service_url: str = DEFAULT_SERVICE_URL
    title: Optional[str] = None
    run_uid: Optional[str] = None
    run_scope: str = "session"
    raise_errors: bool = False
    timeout: Optional[float] = None

    @property
    def enabled(self) -> bool:
        """True when a non-empty API key is configured."""
        return bool(self.api_key)

    @property
    def base_url(self) -> str:
        """Reporter API root, e.g. https://app.testomat.io/api/reporter."""
        return self.service_url.rstrip("/") + REPORTER_PATH

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ReporterConfig":
        """Build a configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ).

        Returns:
            The loaded ReporterConfig.

        Raises:
            ConfigError: If a variable is set to an unusable value.
        """
        if environ is None:
            environ = os.environ

        run_scope = environ.get("TESTOMATIO_RUN_SCOPE", "session").strip().lower() or "session"
        if run_scope not in RUN_SCOPES:
            raise ConfigError(
                f"Invalid TESTOMATIO_RUN_SCOPE '{run_scope}'. "
                f"Expected one of: {', '.join(RUN_SCOPES)}"
            )

        return cls(
            api_key=environ.get(API_KEY_VAR) or None,
            service_url=environ.get("TESTOMATIO_URL") or DEFAULT_SERVICE_URL,
            title=environ.get("TESTOMATIO_TITLE") or None,
            run_uid=environ.get("TESTOMATIO_RUN") or None,
            run_scope=run_scope,
            raise_errors=parse_bool("TESTOMATIO_RAISE_ERRORS", environ.get("TESTOMATIO_RAISE_ERRORS")),
            timeout=parse_timeout(environ.get("TESTOMATIO_TIMEOUT")),
        )


def parse_bool(name: str, value: Optional[str]) -> bool:
    """Parse a boolean flag variable.

    Raises:
        ConfigError: If the value is not a recognised boolean spelling.
    """
    if value is None:
        return False
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean for {name}: '{value}'")


def parse_timeout(value: Optional[str]) -> Optional[float]:
    """Parse TESTOMATIO_TIMEOUT into seconds, or None when unset."""
    if value is None or not value.strip():
        return None
    try:
        timeout = float(value)
    except ValueError as e:
        raise ConfigError(f"Invalid TESTOMATIO_TIMEOUT: '{value}'") from e
    if timeout <= 0:
        raise ConfigError(f"TESTOMATIO_TIMEOUT must be positive, got {timeout}")
    return timeout
