from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from app.config import Settings
from app.db import get_driver
from app.prober import Prober
from app.resolver import Resolver


@dataclass(frozen=True)
class DiagnosticContext:
    """Everything a request handler needs; built once, read-only afterwards."""

    settings: Settings
    resolver: Resolver
    prober: Prober

    @property
    def endpoint(self) -> str:
        return self.settings.RDS_ENDPOINT


def build_context(
    settings: Optional[Settings] = None,
    *,
    resolver: Optional[Resolver] = None,
    prober: Optional[Prober] = None,
) -> DiagnosticContext:
    # Settings() raises pydantic.ValidationError when RDS_ENDPOINT / DB_PASSWORD are missing
    settings = settings or Settings()
    return DiagnosticContext(
        settings=settings,
        resolver=resolver or Resolver(timeout=settings.DNS_TIMEOUT_SECONDS),
        prober=prober or Prober(settings, get_driver(settings.DB_ENGINE)),
    )


def get_context(request: Request) -> DiagnosticContext:
    """FastAPI dependency returning the context attached by ``create_app``."""
    return request.app.state.context
