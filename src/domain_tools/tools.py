from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import dns.resolver

from reporting import ReportEncoder, ToolResult
from resolution import HostnameResolutionTool
from resolution.errors import DomainToolsError
from resolution.lookup import make_resolver

from .config import ConfigError, Settings

log = logging.getLogger(__name__)

Handler = Callable[[Any, Optional[threading.Event]], ToolResult]


class UnknownTool(DomainToolsError, KeyError):
    def __str__(self) -> str:
        return f"unknown tool: {self.args[0]!r}"


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: Handler

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema}


RESOLVE_HOSTNAME_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "hostname": {
            "type": "string",
            "description": "The hostname to resolve (e.g., example.com)",
        },
        "ip_version": {
            "type": "string",
            "description": "IP version to resolve (ipv4, ipv6, or both); defaults to ipv4",
            "enum": ["ipv4", "ipv6", "both"],
        },
    },
    "required": ["hostname"],
}


class ToolRegistry:
    """Name -> Tool lookup shared by the HTTP app and the CLI."""

    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}

    def add(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"tool {tool.name!r} is already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownTool(name) from None

    def tools(self) -> List[Tool]:
        return list(self._tools.values())

    def call(self, name: str, arguments: Any, cancel: Optional[threading.Event] = None) -> ToolResult:
        return self.get(name).handler(arguments, cancel)


def resolve_hostname_handler(tool: HostnameResolutionTool, encoder: ReportEncoder) -> Handler:
    """
    Wrap the resolution tool as a registry handler.

    InvalidArgument and EncodingError propagate (the call could not be processed);
    resolution failures are already inside the report.
    """

    def handler(arguments: Any, cancel: Optional[threading.Event] = None) -> ToolResult:
        log.debug("resolve_hostname called with %r", arguments)
        report = tool.call(arguments, cancel=cancel)

        for outcome in report.hard_failures:
            log.warning(
                "resolve_hostname %s %s lookup failed: %s",
                report.hostname,
                outcome.family.value,
                outcome.failure.message,
            )

        return encoder.tool_result(report)

    return handler


def build_registry(settings: Settings) -> ToolRegistry:
    try:
        resolver = make_resolver(settings.resolver)
    except dns.resolver.NoResolverConfiguration as e:
        raise ConfigError(f"resolver {settings.resolver!r} has no usable system configuration: {e}") from e
    except ValueError as e:
        raise ConfigError(str(e)) from e

    resolution = HostnameResolutionTool(
        timeout=settings.timeout,
        resolver=resolver,
        concurrent_lookups=settings.concurrent_lookups,
    )

    registry = ToolRegistry()
    registry.add(
        Tool(
            name="resolve_hostname",
            description="Convert a hostname to its corresponding IP addresses",
            input_schema=RESOLVE_HOSTNAME_SCHEMA,
            handler=resolve_hostname_handler(resolution, ReportEncoder()),
        )
    )
    return registry
