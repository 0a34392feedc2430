from __future__ import annotations

import socket
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

Rows = List[Dict[str, Any]]


class AddressFamily(Enum):
    IPV4 = ("ipv4", "IPv4", socket.AF_INET)
    IPV6 = ("ipv6", "IPv6", socket.AF_INET6)

    def __init__(self, key: str, label: str, socket_family: int) -> None:
        self.key = key
        self.label = label
        self.socket_family = socket_family


@dataclass(frozen=True)
class ResolvedAddresses:
    ipv4: Optional[str] = None
    ipv6: Optional[str] = None

    def for_family(self, family: AddressFamily) -> Optional[str]:
        return self.ipv4 if family is AddressFamily.IPV4 else self.ipv6

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {"ipv4": self.ipv4, "ipv6": self.ipv6}


@dataclass(frozen=True)
class ProbeSuccess:
    test_rows: Rows
    connection_info: Optional[Rows] = None
    success: Literal[True] = field(default=True, init=False)

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"test": self.test_rows}
        if self.connection_info is not None:
            data["connectionInfo"] = self.connection_info
        return {"success": True, "data": data}


@dataclass(frozen=True)
class ProbeFailure:
    message: str
    code: Optional[str] = None
    errno: Optional[int] = None
    syscall: Optional[str] = None
    address: Optional[str] = None
    port: Optional[int] = None
    stage: Optional[str] = None
    success: Literal[False] = field(default=False, init=False)

    @classmethod
    def from_error(cls, exc: Any, *, stage: str) -> "ProbeFailure":
        """Build a failure from a DiagnosticError (or anything shaped like one)."""
        return cls(
            message=getattr(exc, "message", None) or str(exc) or exc.__class__.__name__,
            code=getattr(exc, "code", None),
            errno=getattr(exc, "errno", None),
            syscall=getattr(exc, "syscall", None),
            address=getattr(exc, "address", None),
            port=getattr(exc, "port", None),
            stage=stage,
        )

    def details(self) -> Dict[str, Any]:
        candidates = {
            "code": self.code,
            "errno": self.errno,
            "syscall": self.syscall,
            "address": self.address,
            "port": self.port,
            "stage": self.stage,
        }
        return {key: value for key, value in candidates.items() if value is not None}

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": False, "error": self.message}
        details = self.details()
        if details:
            payload["details"] = details
        return payload


ProbeResult = Union[ProbeSuccess, ProbeFailure]


@dataclass(frozen=True)
class DualstackResult:
    ipv4: ProbeResult
    ipv6: ProbeResult

    @property
    def status(self) -> str:
        return "success" if self.ipv4.success and self.ipv6.success else "failed"

    def as_dict(self) -> Dict[str, Any]:
        return {"ipv4": self.ipv4.as_dict(), "ipv6": self.ipv6.as_dict()}
