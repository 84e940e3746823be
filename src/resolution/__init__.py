"""
Hostname resolution with per-family partial-failure reporting.

A call resolves one hostname for ipv4, ipv6 or both. Lookup failures are
classified (soft: no such host, hard: anything else) and embedded in the
report; only bad input aborts a call.

Public entrypoint: HostnameResolutionTool
"""

from .errors import InvalidArgument
from .models import ResolutionReport
from .tool import HostnameResolutionTool

__all__ = ["HostnameResolutionTool", "InvalidArgument", "ResolutionReport"]
