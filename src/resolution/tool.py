from __future__ import annotations

import concurrent.futures
import socket
import threading
from datetime import datetime, timezone
from typing import Any, Optional, Sequence, Tuple

import dns.resolver

from .classify import classify
from .errors import ResolutionError
from .lookup import AddressResolver, SystemResolver
from .models import Failure, Family, FamilyOutcome, ResolutionReport, Selector
from .params import ResolutionRequest, parse_resolution_request
from .scope import TimeoutScope


class HostnameResolutionTool:
    """
    Resolve a hostname to its IPv4 and/or IPv6 addresses.

    Flow per call:
      1) validate arguments (errors abort, no scope is created)
      2) open one TimeoutScope shared by every lookup of the call
      3) run one lookup per selected family; failures become per-family data
      4) aggregate into a ResolutionReport

    A failed lookup never short-circuits the other family and never aborts the
    call. Nothing is cached or retried; the tool holds no per-call state.
    """

    def __init__(
        self,
        timeout: float = 5.0,
        resolver: Optional[AddressResolver] = None,
        concurrent_lookups: bool = True,
    ) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout!r}")
        self.timeout = float(timeout)
        self.resolver = resolver or SystemResolver()
        self.concurrent_lookups = bool(concurrent_lookups)

    # ----------------------------
    # Public entrypoints
    # ----------------------------

    def call(self, arguments: Any, cancel: Optional[threading.Event] = None) -> ResolutionReport:
        """Validate an untyped argument map, then resolve. Raises InvalidArgument."""
        request = parse_resolution_request(arguments)
        return self.resolve(request, cancel=cancel)

    def resolve(self, request: ResolutionRequest, cancel: Optional[threading.Event] = None) -> ResolutionReport:
        selector = Selector.parse(request.ip_version)

        with TimeoutScope(self.timeout, parent=cancel) as scope:
            outcomes = self._lookup_families(request.hostname, selector.families, scope)

        return ResolutionReport(
            hostname=request.hostname,
            ip_version=request.ip_version,
            timestamp=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            selector=selector,
            outcomes=outcomes,
        )

    # ----------------------------
    # Lookups
    # ----------------------------

    def _lookup_families(
        self,
        hostname: str,
        families: Sequence[Family],
        scope: TimeoutScope,
    ) -> Tuple[FamilyOutcome, ...]:
        workers = len(families) if self.concurrent_lookups else 1
        ex = concurrent.futures.ThreadPoolExecutor(max_workers=workers, thread_name_prefix="resolve")
        try:
            futs = [(fam, ex.submit(self.resolver.lookup, hostname, fam, scope)) for fam in families]
            # Wait for every family; one failing does not cancel the other.
            return tuple(self._await_family(hostname, fam, fut, scope) for fam, fut in futs)
        finally:
            # Don't block on a resolver call that outlived the scope.
            ex.shutdown(wait=False, cancel_futures=True)

    def _await_family(
        self,
        hostname: str,
        family: Family,
        future: "concurrent.futures.Future[Any]",
        scope: TimeoutScope,
    ) -> FamilyOutcome:
        try:
            addresses = scope.wait(future, hostname)
        except Exception as e:
            return FamilyOutcome(
                family=family,
                failure=Failure(kind=classify(e), message=failure_message(hostname, e)),
            )
        return FamilyOutcome(family=family, addresses=tuple(addresses))


def failure_message(hostname: str, err: BaseException) -> str:
    """Human-readable reason for a failed lookup, always prefixed with the hostname."""
    if isinstance(err, ResolutionError):
        return str(err)
    if isinstance(err, socket.gaierror):
        return f"lookup {hostname}: {err.strerror or err}"
    if isinstance(err, (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer)):
        return f"lookup {hostname}: no such host"
    return f"lookup {hostname}: {type(err).__name__}: {err}"
