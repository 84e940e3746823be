from __future__ import annotations

import socket
from typing import Dict, List, Optional, Protocol

import dns.rdatatype
import dns.resolver

from .models import Family
from .scope import TimeoutScope


class AddressResolver(Protocol):
    # Return address literals for one family, in resolver order; raise on failure.
    def lookup(self, hostname: str, family: Family, scope: Optional[TimeoutScope] = None) -> List[str]:
        ...


class SystemResolver:
    """
    Operating-system resolver (getaddrinfo), restricted to one address family.

    Honors the hosts file and nsswitch ordering, so "localhost" resolves the
    same way it does for every other program on the machine. getaddrinfo takes
    no timeout; the scope bounds how long the caller waits, not the call itself.
    """

    name = "system"

    _FAMILIES: Dict[Family, int] = {
        Family.IPV4: socket.AF_INET,
        Family.IPV6: socket.AF_INET6,
    }

    def lookup(self, hostname: str, family: Family, scope: Optional[TimeoutScope] = None) -> List[str]:
        if scope is not None:
            scope.check(hostname)

        # SOCK_STREAM keeps one entry per address instead of one per socket type.
        infos = socket.getaddrinfo(hostname, None, self._FAMILIES[family], socket.SOCK_STREAM)
        return [str(sockaddr[0]) for _, _, _, _, sockaddr in infos]


class DNSPythonResolver:
    """
    A / AAAA lookups through dnspython against the system-configured nameservers.

    Unlike SystemResolver this skips the hosts file and speaks DNS directly, so
    NXDOMAIN and NoAnswer come back as distinct exceptions and each query's
    lifetime is cut to whatever is left of the scope.
    """

    name = "dnspython"

    _RDTYPES: Dict[Family, dns.rdatatype.RdataType] = {
        Family.IPV4: dns.rdatatype.A,
        Family.IPV6: dns.rdatatype.AAAA,
    }

    def __init__(self, timeout: float = 2.0, lifetime: float = 5.0) -> None:
        self.timeout = float(timeout)
        self.lifetime = float(lifetime)

        self._resolver = dns.resolver.Resolver(configure=True)
        self._resolver.timeout = self.timeout
        self._resolver.lifetime = self.lifetime

    def lookup(self, hostname: str, family: Family, scope: Optional[TimeoutScope] = None) -> List[str]:
        lifetime = self.lifetime
        if scope is not None:
            scope.check(hostname)
            lifetime = min(lifetime, scope.remaining())

        ans = self._resolver.resolve(hostname, self._RDTYPES[family], search=True, lifetime=lifetime)
        return [str(r.address) for r in ans]


RESOLVERS = {
    SystemResolver.name: SystemResolver,
    DNSPythonResolver.name: DNSPythonResolver,
}


def make_resolver(name: str) -> AddressResolver:
    try:
        return RESOLVERS[name]()
    except KeyError:
        raise ValueError(f"unknown resolver {name!r}; expected one of {sorted(RESOLVERS)}") from None
