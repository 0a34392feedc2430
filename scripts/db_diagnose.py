#!/usr/bin/env python3
"""Quick dual-stack database connectivity diagnostic.

Run this with the package installed (`pip install -e .`) and settings configured
 to check whether the configured endpoint answers over IPv4 and IPv6. The script
 builds the same context as the HTTP service, so it resolves and probes exactly
 what ``/test-connections/*`` would.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, Tuple

from app.config import Settings
from app.context import DiagnosticContext, build_context
from app.errors import ResolutionError
from app.models import AddressFamily
from app.reports import dualstack_report, error_report, single_family_report


EXIT_OK = 0
EXIT_PROBE_FAILED = 1
EXIT_RESOLUTION_FAILED = 2

_FAMILIES = {"ipv4": AddressFamily.IPV4, "ipv6": AddressFamily.IPV6}


async def _run(ctx: DiagnosticContext, family: str) -> Tuple[int, Dict[str, Any]]:
    try:
        if family == "dualstack":
            ok, payload = await dualstack_report(ctx)
        else:
            ok, payload = await single_family_report(ctx, _FAMILIES[family])
    except ResolutionError as exc:
        return EXIT_RESOLUTION_FAILED, error_report("resolution failed", exc.message)
    return (EXIT_OK if ok else EXIT_PROBE_FAILED), payload


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--family",
        choices=("ipv4", "ipv6", "dualstack"),
        default="dualstack",
        help="Which address family to probe (default: dualstack)",
    )
    parser.add_argument(
        "--no-transport-check",
        action="store_true",
        help="Skip the raw TCP reachability check before connecting",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Pretty-print JSON output",
    )
    args = parser.parse_args(argv)

    settings = Settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    if args.no_transport_check:
        settings = settings.model_copy(update={"TRANSPORT_CHECK": False})

    code, payload = asyncio.run(_run(build_context(settings), args.family))
    dumps = json.dumps(payload, indent=2 if args.pretty else None, sort_keys=args.pretty, default=str)
    print(dumps)
    return code


if __name__ == "__main__":
    sys.exit(main())
