import asyncio
import socket
from typing import Dict, List, Union

import pytest

from app.errors import ResolutionError
from app.models import AddressFamily, ResolvedAddresses
from app.resolver import Resolver


pytestmark = pytest.mark.anyio


Answer = Union[List[str], BaseException]


class FakeResolver(Resolver):
    def __init__(self, answers: Dict[AddressFamily, Answer], *, timeout: float = 1.0, delay: float = 0.0) -> None:
        super().__init__(timeout=timeout)
        self.answers = answers
        self.delay = delay
        self.calls: List[AddressFamily] = []

    async def lookup(self, hostname: str, family: AddressFamily) -> List[str]:
        self.calls.append(family)
        if self.delay:
            await asyncio.sleep(self.delay)
        answer = self.answers.get(family, [])
        if isinstance(answer, BaseException):
            raise answer
        return list(answer)


async def test_both_families_present():
    resolver = FakeResolver(
        {
            AddressFamily.IPV4: ["10.0.0.1", "10.0.0.2"],
            AddressFamily.IPV6: ["2001:db8::1", "2001:db8::2"],
        }
    )

    addresses = await resolver.resolve("db.example.com")

    assert addresses == ResolvedAddresses(ipv4="10.0.0.1", ipv6="2001:db8::1")
    assert sorted(f.key for f in resolver.calls) == ["ipv4", "ipv6"]


async def test_only_a_records_leaves_ipv6_absent():
    resolver = FakeResolver({AddressFamily.IPV4: ["10.0.0.1"], AddressFamily.IPV6: []})

    addresses = await resolver.resolve("v4only.example.com")

    assert addresses.ipv4 == "10.0.0.1"
    assert addresses.ipv6 is None


async def test_only_aaaa_records_leaves_ipv4_absent():
    resolver = FakeResolver({AddressFamily.IPV4: [], AddressFamily.IPV6: ["2001:db8::1"]})

    addresses = await resolver.resolve("v6only.example.com")

    assert addresses.ipv4 is None
    assert addresses.ipv6 == "2001:db8::1"


async def test_lookup_error_for_one_family_is_not_fatal():
    resolver = FakeResolver(
        {
            AddressFamily.IPV4: ["10.0.0.1"],
            AddressFamily.IPV6: socket.gaierror(socket.EAI_NONAME, "Name or service not known"),
        }
    )

    addresses = await resolver.resolve("db.example.com")

    assert addresses.as_dict() == {"ipv4": "10.0.0.1", "ipv6": None}


async def test_no_records_at_all_raises():
    resolver = FakeResolver(
        {
            AddressFamily.IPV4: socket.gaierror(socket.EAI_NONAME, "Name or service not known"),
            AddressFamily.IPV6: [],
        }
    )

    with pytest.raises(ResolutionError) as excinfo:
        await resolver.resolve("missing.example.com")

    assert "missing.example.com" in excinfo.value.message
    assert "Name or service not known" in excinfo.value.message
    assert excinfo.value.code == "ENOTFOUND"


async def test_slow_lookup_times_out_per_family():
    resolver = FakeResolver(
        {AddressFamily.IPV4: ["10.0.0.1"], AddressFamily.IPV6: ["2001:db8::1"]},
        timeout=0.01,
        delay=0.5,
    )

    with pytest.raises(ResolutionError) as excinfo:
        await resolver.resolve("slow.example.com")

    assert "timeout" in excinfo.value.message


async def test_lookup_uses_event_loop_getaddrinfo_and_dedupes():
    resolver = Resolver()

    addresses = await resolver.lookup("127.0.0.1", AddressFamily.IPV4)

    assert addresses == ["127.0.0.1"]
