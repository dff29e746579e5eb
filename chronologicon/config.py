"""Environment-driven configuration for the Chronologicon service.

Usage
-----
Load configuration from the process environment:

>>> import os
>>> os.environ["CHRONOLOGICON_PORT"] = "9000"
>>> config = ChronologiconConfig.from_env()
>>> config.port
'9000'

"""

from __future__ import annotations

import dataclasses as dc
import os

_MIN_PORT = 1
_MAX_PORT = 65535


def _read(env_var: str) -> str | None:
    raw = os.environ.get(env_var, "")
    return raw.strip() or None


def _parse_positive_int(env_var: str, default: int) -> int:
    """Read a positive integer env var, falling back to ``default``."""
    raw = _read(env_var)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        msg = f"{env_var} must be an integer, got: {raw!r}"
        raise ValueError(msg) from exc
    if value < 1:
        msg = f"{env_var} must be positive, got: {value}"
        raise ValueError(msg)
    return value


def parse_port(raw: str) -> int:
    """Parse a TCP port, rejecting values outside 1-65535."""
    port = int(raw)
    if not (_MIN_PORT <= port <= _MAX_PORT):
        msg = f"port {port} outside valid range {_MIN_PORT}-{_MAX_PORT}"
        raise ValueError(msg)
    return port


@dc.dataclass(frozen=True, slots=True)
class ChronologiconConfig:
    """Runtime settings.

    Attributes
    ----------
    database_url
        SQLAlchemy async URL. ``None`` starts the HTTP runtime in
        health-only mode.
    host
        Bind address for the HTTP runtime.
    port
        Listen port for the HTTP runtime, kept as the raw string so the
        runtime can report an invalid value before exiting.
    log_level
        Raw log level; normalised by :func:`chronologicon.logging.configure_logging`.
    search_max_limit
        Upper bound applied to the ``limit`` of event searches.

    """

    database_url: str | None = None
    host: str = "0.0.0.0"  # noqa: S104 - bind all interfaces for container
    port: str = "8080"
    log_level: str = "INFO"
    search_max_limit: int = 100

    @classmethod
    def from_env(cls) -> ChronologiconConfig:
        """Build configuration from ``CHRONOLOGICON_*`` variables.

        Raises
        ------
        ValueError
            If ``CHRONOLOGICON_SEARCH_MAX_LIMIT`` is not a positive integer.

        """
        defaults = cls()
        return cls(
            database_url=_read("CHRONOLOGICON_DATABASE_URL"),
            host=_read("CHRONOLOGICON_HOST") or defaults.host,
            port=_read("CHRONOLOGICON_PORT") or defaults.port,
            log_level=_read("CHRONOLOGICON_LOG_LEVEL") or defaults.log_level,
            search_max_limit=_parse_positive_int(
                "CHRONOLOGICON_SEARCH_MAX_LIMIT", defaults.search_max_limit
            ),
        )
