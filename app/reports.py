from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from app.context import DiagnosticContext
from app.models import AddressFamily
from app.orchestrator import probe_dualstack


def utc_timestamp() -> str:
    """ISO 8601 in UTC with millisecond precision and a ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


async def single_family_report(ctx: DiagnosticContext, family: AddressFamily) -> Tuple[bool, Dict[str, Any]]:
    """Resolve, probe one family; ResolutionError propagates to the caller."""
    addresses = await ctx.resolver.resolve(ctx.endpoint)
    address = addresses.for_family(family)
    result = await ctx.prober.probe(address, family)
    return result.success, {
        "timestamp": utc_timestamp(),
        f"{family.key}Address": address,
        "testResult": result.as_dict(),
    }


async def dualstack_report(ctx: DiagnosticContext) -> Tuple[bool, Dict[str, Any]]:
    addresses = await ctx.resolver.resolve(ctx.endpoint)
    result = await probe_dualstack(ctx.prober, addresses)
    return result.status == "success", {
        "timestamp": utc_timestamp(),
        "status": result.status,
        "addresses": addresses.as_dict(),
        "testResults": result.as_dict(),
    }


def error_report(error: str, message: str) -> Dict[str, Any]:
    return {
        "error": error,
        "message": message,
        "timestamp": utc_timestamp(),
    }
