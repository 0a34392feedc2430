from __future__ import annotations

import asyncio
import logging
import socket
from typing import List, Optional, Tuple

from app.errors import ResolutionError
from app.models import AddressFamily, ResolvedAddresses


logger = logging.getLogger(__name__)


class Resolver:
    """Resolves an endpoint to its first IPv4 and first IPv6 address.

    Both families are looked up concurrently on every call. A family with no
    records (or whose lookup fails) comes back as ``None``; only when both are
    empty does :meth:`resolve` raise :class:`ResolutionError`.
    """

    def __init__(self, *, timeout: float = 5.0) -> None:
        self.timeout = timeout

    async def resolve(self, hostname: str) -> ResolvedAddresses:
        logger.info("[DNS] resolving %s", hostname)
        (ipv4, ipv4_error), (ipv6, ipv6_error) = await asyncio.gather(
            self._first_address(hostname, AddressFamily.IPV4),
            self._first_address(hostname, AddressFamily.IPV6),
        )

        if ipv4 is None and ipv6 is None:
            reasons = "; ".join(
                f"{family.label}: {reason}"
                for family, reason in ((AddressFamily.IPV4, ipv4_error), (AddressFamily.IPV6, ipv6_error))
                if reason
            )
            message = f"No IPv4 or IPv6 address found for {hostname}"
            if reasons:
                message = f"{message} ({reasons})"
            logger.error("[DNS] %s", message)
            raise ResolutionError(message, code="ENOTFOUND", syscall="getaddrinfo")

        logger.info("[DNS] %s -> ipv4=%s ipv6=%s", hostname, ipv4, ipv6)
        return ResolvedAddresses(ipv4=ipv4, ipv6=ipv6)

    async def _first_address(self, hostname: str, family: AddressFamily) -> Tuple[Optional[str], Optional[str]]:
        try:
            addresses = await asyncio.wait_for(self.lookup(hostname, family), self.timeout)
        except asyncio.TimeoutError:
            logger.warning("[DNS] %s lookup for %s timed out after %.1fs", family.label, hostname, self.timeout)
            return None, "timeout"
        except OSError as exc:  # socket.gaierror included
            logger.warning("[DNS] %s lookup for %s failed: %s", family.label, hostname, exc)
            return None, str(exc)

        if not addresses:
            logger.warning("[DNS] no %s records for %s", family.label, hostname)
            return None, "no records"
        logger.debug("[DNS] %s addresses for %s: %s", family.label, hostname, addresses)
        return addresses[0], None

    async def lookup(self, hostname: str, family: AddressFamily) -> List[str]:
        """All addresses of one family, in resolver order, without duplicates."""
        loop = asyncio.get_running_loop()
        infos = await loop.getaddrinfo(
            hostname,
            None,
            family=family.socket_family,
            type=socket.SOCK_STREAM,
        )
        seen: List[str] = []
        for _family, _type, _proto, _canonname, sockaddr in infos:
            address = sockaddr[0]
            if address not in seen:
                seen.append(address)
        return seen
