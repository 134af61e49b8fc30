"""
Adapter protocol definitions and connection configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from ..dialects.base import Dialect

DATABASE_URL_ENV = "IDENTITYLAB_DATABASE_URL"


class AdapterError(RuntimeError):
    """Base error for adapter-related failures."""


class AdapterConfigurationError(AdapterError):
    """Raised when configuration or required dependencies are invalid."""


class AdapterConnectionError(AdapterError):
    """Raised when establishing or using a connection fails."""


class AdapterExecutionError(AdapterError):
    """Raised when SQL execution or parameter validation fails."""


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: str, *, key: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise AdapterConfigurationError(f"Invalid boolean value for '{key}': {value!r}")


def _parse_number(value: str, *, key: str, cast=float):
    try:
        return cast(value)
    except ValueError as exc:
        raise AdapterConfigurationError(f"Invalid numeric value for '{key}': {value!r}") from exc


@dataclass
class ConnectionConfig:
    """
    Normalized connection configuration for adapters.

    ``url`` keeps the DSN without the options consumed here so that drivers
    receive a clean connection string; anything unrecognised in the query
    string is passed through as a driver option.
    """

    url: str
    autocommit: bool = False
    isolation_level: str | None = None
    timeout: float | None = None
    options: dict[str, Any] = field(default_factory=dict)
    source: str | None = None

    @property
    def scheme(self) -> str:
        return urlsplit(self.url).scheme.split("+", 1)[0].lower()

    @property
    def in_memory(self) -> bool:
        """
        True for SQLite in-memory URLs, where every new connection is a new database.
        """
        return self.url in ("sqlite://", "sqlite:///:memory:", ":memory:")

    @classmethod
    def from_dsn(cls, dsn: str, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a config by parsing the DSN and its query string.
        """

        parts = urlsplit(dsn)
        query = dict(parse_qsl(parts.query))

        autocommit = False
        if "autocommit" in query:
            autocommit = _parse_bool(query.pop("autocommit"), key="autocommit")
        timeout = None
        if "timeout" in query:
            timeout = _parse_number(query.pop("timeout"), key="timeout")
        isolation_level = query.pop("isolation_level", None)

        options: dict[str, Any] = {}
        for key, value in query.items():
            if key == "connect_timeout":
                options[key] = _parse_number(value, key=key, cast=int)
            else:
                options[key] = value
        options.update(kwargs.pop("options", None) or {})

        url = urlunsplit((parts.scheme, parts.netloc, parts.path, "", parts.fragment))
        if parts.scheme == "sqlite" and not parts.netloc and parts.path.startswith("/"):
            # urlunsplit collapses "sqlite:///x" to "sqlite:/x"
            url = f"sqlite://{parts.path}"

        return cls(
            url=url,
            autocommit=kwargs.pop("autocommit", autocommit),
            isolation_level=kwargs.pop("isolation_level", isolation_level),
            timeout=kwargs.pop("timeout", timeout),
            options=options,
            **kwargs,
        )

    @classmethod
    def from_env(cls, env_var: str = DATABASE_URL_ENV, **kwargs: Any) -> "ConnectionConfig":
        """
        Build a config from an environment variable containing a DSN.
        """

        value = os.getenv(env_var)
        if not value:
            raise AdapterConfigurationError(f"Environment variable {env_var} is not set")
        return cls.from_dsn(value, source=env_var, **kwargs)

    def redacted_dsn(self) -> str:
        """
        Return the DSN with any password replaced, safe for logging.
        """

        parts = urlsplit(self.url)
        if parts.password is None:
            return self.url
        userinfo, _, hostinfo = parts.netloc.rpartition("@")
        username = userinfo.split(":", 1)[0]
        return urlunsplit(parts._replace(netloc=f"{username}:***@{hostinfo}"))

    def descriptive_label(self) -> str:
        redacted = self.redacted_dsn()
        if self.source:
            return f"{self.source} ({redacted})"
        return redacted


class DatabaseAdapter(Protocol):
    """
    Adapter interface exposing database operations used by higher layers.
    """

    dialect: Dialect

    @property
    def connected(self) -> bool:
        """
        Whether :meth:`connect` has been called and the handle is still open.
        """

    def connect(self, config: ConnectionConfig) -> Any:
        """
        Establish a connection handle using the supplied configuration.
        """

    def close(self) -> None:
        """
        Close underlying resources. Implementations should be idempotent.
        """

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        """
        Execute a single SQL statement returning a cursor-like object.
        """

    def begin(self) -> None:
        """
        Start a transaction.
        """

    def commit(self) -> None:
        """
        Commit the current transaction.
        """

    def rollback(self) -> None:
        """
        Roll back the current transaction.
        """

    def last_insert_id(self, cursor: Any, table: str, pk_column: str) -> Any:
        """
        Retrieve the primary key value generated by the previous insert.
        """
