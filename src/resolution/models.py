from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Family(str, Enum):
    IPV4 = "ipv4"
    IPV6 = "ipv6"


class Selector(str, Enum):
    """
    Address-family selector as routed by the aggregator.

    OTHER covers any value outside ipv4/ipv6/both; it takes the dual-family path
    (same as BOTH) but the report still echoes the raw value the caller sent.
    """

    IPV4 = "ipv4"
    IPV6 = "ipv6"
    BOTH = "both"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: str) -> "Selector":
        for s in (cls.IPV4, cls.IPV6, cls.BOTH):
            if raw == s.value:
                return s
        return cls.OTHER

    @property
    def families(self) -> Tuple[Family, ...]:
        if self is Selector.IPV4:
            return (Family.IPV4,)
        if self is Selector.IPV6:
            return (Family.IPV6,)
        return (Family.IPV4, Family.IPV6)


class FailureKind(str, Enum):
    SOFT = "soft"  # host/record not found
    HARD = "hard"  # timeout, cancellation, transport, malformed name


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str


@dataclass(frozen=True)
class FamilyOutcome:
    """Result of one single-family lookup: addresses on success, failure otherwise."""

    family: Family
    addresses: Optional[Tuple[str, ...]] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True)
class ResolutionReport:
    """
    Aggregated answer for one resolve_hostname call.

    Resolution failures are data here, not exceptions: `failed` and the error
    fields describe them while the call itself succeeds.
    """

    hostname: str
    ip_version: str
    timestamp: str
    selector: Selector
    outcomes: Tuple[FamilyOutcome, ...] = field(default_factory=tuple)

    @property
    def failed(self) -> bool:
        # Dual-family: only when every family failed. Single-family: that one failed.
        return bool(self.outcomes) and all(not o.ok for o in self.outcomes)

    @property
    def hard_failures(self) -> List[FamilyOutcome]:
        return [o for o in self.outcomes if o.failure is not None and o.failure.kind is FailureKind.HARD]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "hostname": self.hostname,
            "ip_version": self.ip_version,
            "timestamp": self.timestamp,
            "failed": self.failed,
        }

        if len(self.selector.families) == 1:
            (o,) = self.outcomes
            if o.ok:
                out[f"{o.family.value}_addresses"] = list(o.addresses or ())
            else:
                out["error"] = o.failure.message
            return out

        for o in self.outcomes:
            if o.ok:
                out[f"{o.family.value}_addresses"] = list(o.addresses or ())
            else:
                out[f"{o.family.value}_error"] = o.failure.message

        if self.failed:
            out["error"] = "failed to resolve ipv4 and ipv6 addresses: " + "; ".join(
                f"{o.family.value}: {o.failure.message}" for o in self.outcomes
            )

        return out
