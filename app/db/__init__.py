# app/db/__init__.py
from __future__ import annotations

import asyncio
import errno
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple
from urllib.parse import quote, urlencode, urlunparse

import aiomysql
import psycopg
from psycopg.rows import dict_row
from pymysql import err as mysql_errors
from pymysql.constants import CR, ER

from app.config import Settings
from app.errors import DatabaseError
from app.models import AddressFamily


logger = logging.getLogger(__name__)


# libpq rejects connect_timeout values below 2 seconds
_PG_MIN_CONNECT_TIMEOUT = 2


def format_host(address: str) -> str:
    """Bracket-wrap IPv6 literals so they can sit in front of a ``:port``."""

    if address and ":" in address and not address.startswith("["):
        return f"[{address}]"
    return address


def format_endpoint(address: str, port: int) -> str:
    return f"{format_host(address)}:{port}"


def os_error_detail(exc: BaseException) -> Tuple[Optional[str], Optional[int]]:
    """Return the symbolic errno name and number for an OS-level failure."""

    if isinstance(exc, (TimeoutError, asyncio.TimeoutError)) and not getattr(exc, "errno", None):
        return "ETIMEDOUT", errno.ETIMEDOUT
    number = getattr(exc, "errno", None)
    if isinstance(number, int) and number > 0:
        return errno.errorcode.get(number), number
    return None, None


@dataclass(frozen=True)
class ConnectionTarget:
    address: str
    family: AddressFamily
    port: int
    user: str
    password: str
    database: str
    connect_timeout: float

    @property
    def endpoint(self) -> str:
        return format_endpoint(self.address, self.port)

    @classmethod
    def from_settings(cls, settings: Settings, address: str, family: AddressFamily) -> "ConnectionTarget":
        return cls(
            address=address,
            family=family,
            port=settings.DB_PORT,
            user=settings.DB_USER,
            password=settings.DB_PASSWORD,
            database=settings.DB_NAME,
            connect_timeout=settings.CONNECT_TIMEOUT_SECONDS,
        )


class ProbeConnection(Protocol):
    async def fetch(self, query: str) -> List[Dict[str, Any]]: ...

    async def close(self) -> None: ...


class DatabaseDriver(Protocol):
    name: str
    liveness_query: str
    identity_query: str

    async def connect(self, target: ConnectionTarget) -> ProbeConnection: ...


# ---- MySQL (aiomysql)

def _mysql_error_names() -> Dict[int, str]:
    names: Dict[int, str] = {}
    for name, value in vars(ER).items():
        if name.isupper() and isinstance(value, int) and not name.startswith("ERROR_"):
            names.setdefault(value, f"ER_{name}")
    for name, value in vars(CR).items():
        if name.startswith("CR_") and isinstance(value, int) and not name.endswith(("_FIRST", "_LAST")):
            names.setdefault(value, name)
    return names


_MYSQL_ERROR_NAMES = _mysql_error_names()


def mysql_error(exc: BaseException, target: ConnectionTarget) -> DatabaseError:
    """Translate a PyMySQL/aiomysql or socket failure into a DatabaseError."""

    code: Optional[str] = None
    number: Optional[int] = None
    message = str(exc) or exc.__class__.__name__

    if isinstance(exc, mysql_errors.MySQLError) and exc.args and isinstance(exc.args[0], int):
        number = exc.args[0]
        code = _MYSQL_ERROR_NAMES.get(number)
        if len(exc.args) > 1:
            message = str(exc.args[1])

    os_error = exc if isinstance(exc, (OSError, asyncio.TimeoutError)) else exc.__cause__
    if isinstance(os_error, (OSError, asyncio.TimeoutError)):
        os_code, os_number = os_error_detail(os_error)
        if os_code:
            code, number = os_code, os_number
            message = f"{message} (connect {os_code} {target.endpoint})"
        return DatabaseError(
            message,
            code=code,
            errno=number,
            syscall="connect",
            address=target.address,
            port=target.port,
        )

    return DatabaseError(message, code=code, errno=number)


def _timed_out(action: str, target: ConnectionTarget) -> DatabaseError:
    return DatabaseError(
        f"{action} timed out after {target.connect_timeout:g}s (connect ETIMEDOUT {target.endpoint})",
        code="ETIMEDOUT",
        errno=errno.ETIMEDOUT,
        syscall="connect",
        address=target.address,
        port=target.port,
    )


class _MySQLConnection:
    def __init__(self, conn: aiomysql.Connection, target: ConnectionTarget) -> None:
        self._conn = conn
        self._target = target

    async def _fetch(self, query: str) -> List[Dict[str, Any]]:
        async with self._conn.cursor(aiomysql.DictCursor) as cur:
            await cur.execute(query)
            return list(await cur.fetchall())

    async def fetch(self, query: str) -> List[Dict[str, Any]]:
        # queries share the connect budget
        try:
            return await asyncio.wait_for(self._fetch(query), self._target.connect_timeout)
        except asyncio.TimeoutError as exc:
            raise _timed_out("MySQL query", self._target) from exc
        except (mysql_errors.MySQLError, OSError) as exc:
            raise mysql_error(exc, self._target) from exc

    async def close(self) -> None:
        self._conn.close()


class MySQLDriver:
    name = "mysql"
    liveness_query = "SELECT 1 as test"
    identity_query = "SELECT @@hostname, @@port, DATABASE()"

    async def connect(self, target: ConnectionTarget) -> ProbeConnection:
        logger.debug("[DB] mysql connect %s db=%s", target.endpoint, target.database)
        # aiomysql's connect_timeout only covers the TCP connect, not the greeting/auth
        try:
            conn = await asyncio.wait_for(
                aiomysql.connect(
                    host=target.address,
                    port=target.port,
                    user=target.user,
                    password=target.password,
                    db=target.database,
                    connect_timeout=target.connect_timeout,
                    autocommit=True,
                ),
                target.connect_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise _timed_out("MySQL handshake", target) from exc
        except (mysql_errors.MySQLError, OSError) as exc:
            raise mysql_error(exc, target) from exc
        return _MySQLConnection(conn, target)


# ---- PostgreSQL (psycopg)

def make_conninfo(target: ConnectionTarget) -> str:
    """Compose a libpq URI; IPv6 hosts are bracket-wrapped."""

    userinfo = quote(target.user, safe="")
    if target.password:
        userinfo += f":{quote(target.password, safe='')}"
    netloc = f"{userinfo}@{target.endpoint}"
    connect_timeout = max(_PG_MIN_CONNECT_TIMEOUT, int(round(target.connect_timeout)))
    query = urlencode({"connect_timeout": connect_timeout, "sslmode": "prefer"})
    return urlunparse(("postgresql", netloc, f"/{quote(target.database)}", "", query, ""))


def postgres_error(exc: BaseException, target: ConnectionTarget) -> DatabaseError:
    message = str(exc).strip() or exc.__class__.__name__
    if isinstance(exc, OSError):
        os_code, os_number = os_error_detail(exc)
        return DatabaseError(
            message,
            code=os_code,
            errno=os_number,
            syscall="connect",
            address=target.address,
            port=target.port,
        )
    return DatabaseError(message, code=getattr(exc, "sqlstate", None))


class _PostgresConnection:
    def __init__(self, conn: psycopg.AsyncConnection, target: ConnectionTarget) -> None:
        self._conn = conn
        self._target = target

    async def fetch(self, query: str) -> List[Dict[str, Any]]:
        try:
            async with self._conn.cursor() as cur:
                await cur.execute(query)
                return list(await cur.fetchall())
        except psycopg.Error as exc:
            raise postgres_error(exc, self._target) from exc

    async def close(self) -> None:
        await self._conn.close()


class PostgresDriver:
    name = "postgresql"
    liveness_query = "SELECT 1 as test"
    identity_query = (
        "SELECT inet_server_addr()::text AS hostname, inet_server_port() AS port, "
        "current_database() AS database"
    )

    async def connect(self, target: ConnectionTarget) -> ProbeConnection:
        logger.debug("[DB] postgresql connect %s db=%s", target.endpoint, target.database)
        try:
            conn = await psycopg.AsyncConnection.connect(
                make_conninfo(target),
                autocommit=True,
                row_factory=dict_row,
            )
        except (psycopg.Error, OSError) as exc:
            raise postgres_error(exc, target) from exc
        return _PostgresConnection(conn, target)


_DRIVERS = {
    MySQLDriver.name: MySQLDriver,
    PostgresDriver.name: PostgresDriver,
}


def get_driver(engine: str) -> DatabaseDriver:
    try:
        return _DRIVERS[engine]()
    except KeyError:
        raise ValueError(f"unsupported DB_ENGINE {engine!r}") from None
