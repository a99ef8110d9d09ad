# =============================================================================
# plausible/config.py  -  Settings read from the environment
# =============================================================================
#
# The entry points (tools/mcp_server.py, main.py, smoke_client.py) call
# load_dotenv() and then build these dataclasses ONCE.  Everything below the
# entry points receives a config object explicitly; nothing else in the
# package reads os.environ.
#
#   PLAUSIBLE_API_URL   Stats API base URL   (default https://plausible.io/api/v2)
#   PLAUSIBLE_API_KEY   Bearer token         (required)
#   PLAUSIBLE_TIMEOUT   Request timeout, s   (default 30)
#   DEBUG_STDIO         "true" for DEBUG-level logs on stderr
#   DEBUG_LOG_FILE      Also append log records to this file
# =============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from plausible.constants import DEFAULT_API_URL
from plausible.errors import ConfigError

DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class PlausibleConfig:
    """Connection settings for the Stats API client."""

    api_key: str
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def __repr__(self) -> str:
        # Keep the key out of logs and tracebacks.
        return f"PlausibleConfig(api_url={self.api_url!r}, timeout={self.timeout!r})"

    @property
    def query_url(self) -> str:
        return f"{self.api_url.rstrip('/')}/query"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PlausibleConfig":
        """Build the config from environment variables.

        Raises:
            ConfigError: if PLAUSIBLE_API_KEY is missing or PLAUSIBLE_TIMEOUT
                is not a positive number.
        """
        env = os.environ if environ is None else environ

        api_key = env.get("PLAUSIBLE_API_KEY", "")
        if not api_key:
            raise ConfigError("PLAUSIBLE_API_KEY environment variable is required")

        raw_timeout = env.get("PLAUSIBLE_TIMEOUT", "")
        timeout = DEFAULT_TIMEOUT_SECONDS
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise ConfigError(f"PLAUSIBLE_TIMEOUT must be a number, got {raw_timeout!r}") from None
            if timeout <= 0:
                raise ConfigError(f"PLAUSIBLE_TIMEOUT must be positive, got {raw_timeout!r}")

        return cls(
            api_key=api_key,
            api_url=env.get("PLAUSIBLE_API_URL") or DEFAULT_API_URL,
            timeout=timeout,
        )


@dataclass(frozen=True)
class LoggingConfig:
    """Debug switches for the stderr log stream."""

    debug: bool = False
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LoggingConfig":
        env = os.environ if environ is None else environ
        return cls(
            debug=env.get("DEBUG_STDIO", "false").lower() == "true",
            log_file=env.get("DEBUG_LOG_FILE") or None,
        )
