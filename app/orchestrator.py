from __future__ import annotations

import asyncio
import logging

from app.models import AddressFamily, DualstackResult, ProbeFailure, ProbeResult, ResolvedAddresses
from app.prober import Prober


logger = logging.getLogger(__name__)


def _settled(outcome: ProbeResult | BaseException, family: AddressFamily) -> ProbeResult:
    if isinstance(outcome, BaseException):
        logger.error("[DUALSTACK] %s probe raised: %r", family.label, outcome)
        return ProbeFailure(str(outcome) or outcome.__class__.__name__, stage="internal")
    return outcome


async def probe_dualstack(prober: Prober, addresses: ResolvedAddresses) -> DualstackResult:
    """Probe both families concurrently and wait for both to settle."""
    ipv4, ipv6 = await asyncio.gather(
        prober.probe(addresses.ipv4, AddressFamily.IPV4),
        prober.probe(addresses.ipv6, AddressFamily.IPV6),
        return_exceptions=True,
    )
    result = DualstackResult(
        ipv4=_settled(ipv4, AddressFamily.IPV4),
        ipv6=_settled(ipv6, AddressFamily.IPV6),
    )
    logger.info(
        "[DUALSTACK] status=%s ipv4=%s ipv6=%s",
        result.status,
        result.ipv4.success,
        result.ipv6.success,
    )
    return result
