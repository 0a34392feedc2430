from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.context import DiagnosticContext, get_context
from app.errors import ResolutionError
from app.models import AddressFamily
from app.reports import dualstack_report, error_report, single_family_report


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/test-connections")


def _resolution_failed(label: str, exc: ResolutionError) -> JSONResponse:
    # A probe that fails is still a 200; only a missing address is a 500
    logger.error("[API] %s test failed: %s", label, exc.message)
    return JSONResponse(status_code=500, content=error_report(f"{label} test failed", exc.message))


async def _single_family(ctx: DiagnosticContext, family: AddressFamily):
    try:
        _ok, payload = await single_family_report(ctx, family)
    except ResolutionError as exc:
        return _resolution_failed(family.label, exc)
    return payload


@router.get("/ipv4")
async def test_ipv4(ctx: DiagnosticContext = Depends(get_context)):
    return await _single_family(ctx, AddressFamily.IPV4)


@router.get("/ipv6")
async def test_ipv6(ctx: DiagnosticContext = Depends(get_context)):
    return await _single_family(ctx, AddressFamily.IPV6)


@router.get("/dualstack")
async def test_dualstack(ctx: DiagnosticContext = Depends(get_context)):
    try:
        _ok, payload = await dualstack_report(ctx)
    except ResolutionError as exc:
        return _resolution_failed("Dualstack", exc)
    return payload
