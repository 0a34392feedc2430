from __future__ import annotations

from typing import Optional


class DiagnosticError(Exception):
    """Base error carrying the low-level detail a probe report exposes."""

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        errno: Optional[int] = None,
        syscall: Optional[str] = None,
        address: Optional[str] = None,
        port: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.errno = errno
        self.syscall = syscall
        self.address = address
        self.port = port


class ResolutionError(DiagnosticError):
    """DNS produced no usable address for the endpoint."""


class TransportError(DiagnosticError):
    """Raw TCP reachability check failed."""


class DatabaseError(DiagnosticError):
    """Connect, auth, handshake or query failure at the database layer."""
