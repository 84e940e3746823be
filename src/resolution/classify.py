from __future__ import annotations

import socket
from typing import Optional

import dns.resolver

from .errors import HostNotFound
from .models import FailureKind

# getaddrinfo codes that mean "the resolver answered: nothing by that name/family".
# EAI_NODATA / EAI_ADDRFAMILY are glibc extensions and missing on some platforms.
_NOT_FOUND_GAI_CODES = frozenset(
    code
    for code in (
        getattr(socket, "EAI_NONAME", None),
        getattr(socket, "EAI_NODATA", None),
        getattr(socket, "EAI_ADDRFAMILY", None),
    )
    if code is not None
)


def is_host_not_found(err: Optional[BaseException]) -> bool:
    """
    True only for errors that structurally say "no such host / no such record".

    Anything we cannot positively identify (timeouts, cancellation, SERVFAIL,
    transport errors, bad names) is not a not-found.
    """
    if err is None:
        return False
    if isinstance(err, HostNotFound):
        return True
    if isinstance(err, socket.gaierror):
        return err.errno in _NOT_FOUND_GAI_CODES
    if isinstance(err, (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer)):
        return True
    return False


def classify(err: Optional[BaseException]) -> Optional[FailureKind]:
    """None -> no failure; not-found -> SOFT; everything else -> HARD."""
    if err is None:
        return None
    return FailureKind.SOFT if is_host_not_found(err) else FailureKind.HARD
