from __future__ import annotations

import asyncio
import ipaddress
import logging
from time import perf_counter

from app.config import Settings
from app.db import ConnectionTarget, DatabaseDriver, ProbeConnection, os_error_detail
from app.errors import DiagnosticError, TransportError
from app.models import AddressFamily, ProbeFailure, ProbeResult, ProbeSuccess


logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((perf_counter() - start) * 1000)


def _matches_family(address: str, family: AddressFamily) -> bool:
    try:
        parsed = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return False
    return parsed.version == (4 if family is AddressFamily.IPV4 else 6)


class Prober:
    """Connects to one address, runs the liveness and identity queries.

    :meth:`probe` never raises: DNS gaps, transport failures and database
    failures all come back as :class:`ProbeFailure`.
    """

    def __init__(self, settings: Settings, driver: DatabaseDriver) -> None:
        self.settings = settings
        self.driver = driver

    async def probe(self, address: str | None, family: AddressFamily) -> ProbeResult:
        if address is None:
            message = f"No {family.label} address resolved for {self.settings.RDS_ENDPOINT}"
            logger.warning("[PROBE] %s", message)
            return ProbeFailure(message, code="ENOADDRESS", stage="dns")
        if not _matches_family(address, family):
            message = f"{address} is not an {family.label} address"
            logger.warning("[PROBE] %s", message)
            return ProbeFailure(message, code="EAFNOSUPPORT", address=address, stage="dns")

        target = ConnectionTarget.from_settings(self.settings, address, family)
        start = perf_counter()
        logger.info("[PROBE] %s probe %s via %s", family.label, target.endpoint, self.driver.name)

        if self.settings.TRANSPORT_CHECK:
            try:
                await self.check_transport(target)
            except TransportError as exc:
                return self._failed(family, target, exc, "transport", start)

        try:
            conn = await self.driver.connect(target)
        except DiagnosticError as exc:
            return self._failed(family, target, exc, "connect", start)
        except Exception as exc:
            logger.exception("[PROBE] %s unexpected connect error", family.label)
            return self._failed(family, target, exc, "connect", start)

        try:
            test_rows = await conn.fetch(self.driver.liveness_query)
            connection_info = await conn.fetch(self.driver.identity_query)
        except DiagnosticError as exc:
            return self._failed(family, target, exc, "query", start)
        except Exception as exc:
            logger.exception("[PROBE] %s unexpected query error", family.label)
            return self._failed(family, target, exc, "query", start)
        finally:
            await self._close(conn, family)

        logger.info("[PROBE] %s ok %s in %sms", family.label, target.endpoint, _elapsed_ms(start))
        return ProbeSuccess(test_rows=test_rows, connection_info=connection_info)

    async def check_transport(self, target: ConnectionTarget) -> None:
        """Plain TCP connect; raises TransportError when the port is unreachable."""
        timeout = self.settings.TRANSPORT_TIMEOUT_SECONDS
        try:
            _reader, writer = await asyncio.wait_for(
                asyncio.open_connection(target.address, target.port),
                timeout,
            )
        except (OSError, asyncio.TimeoutError) as exc:
            code, number = os_error_detail(exc)
            raise TransportError(
                f"connect {code or exc.__class__.__name__} {target.endpoint}",
                code=code,
                errno=number,
                syscall="connect",
                address=target.address,
                port=target.port,
            ) from exc

        writer.close()
        try:
            await writer.wait_closed()
        except OSError as exc:
            logger.debug("[PROBE] transport check close raised: %s", exc)

    async def _close(self, conn: ProbeConnection, family: AddressFamily) -> None:
        try:
            await conn.close()
        except Exception as exc:
            logger.warning("[PROBE] %s connection close failed: %s", family.label, exc)

    def _failed(
        self,
        family: AddressFamily,
        target: ConnectionTarget,
        exc: BaseException,
        stage: str,
        start: float,
    ) -> ProbeFailure:
        failure = ProbeFailure.from_error(exc, stage=stage)
        logger.warning(
            "[PROBE] %s %s failed for %s after %sms: %s (code=%s errno=%s)",
            family.label,
            stage,
            target.endpoint,
            _elapsed_ms(start),
            failure.message,
            failure.code,
            failure.errno,
        )
        return failure
