# test_app.py
from __future__ import annotations

import asyncio
import json
import socket
import threading
from typing import List, Optional

import dns.resolver
import pytest
from fastapi.testclient import TestClient

from domain_tools import cli
from domain_tools.app import create_app, watch_cancellation
from domain_tools.config import ConfigError, Settings
from domain_tools.tools import (
    RESOLVE_HOSTNAME_SCHEMA,
    Tool,
    ToolRegistry,
    UnknownTool,
    build_registry,
    resolve_hostname_handler,
)
from reporting import ReportEncoder, ToolResult
from resolution import HostnameResolutionTool
from resolution.lookup import DNSPythonResolver, SystemResolver
from resolution.models import Family
from resolution.scope import TimeoutScope


class StaticResolver:
    """localhost-style answers without touching the real resolver."""

    TABLE = {
        ("localhost", Family.IPV4): ["127.0.0.1"],
        ("localhost", Family.IPV6): ["::1"],
        ("v4only.example", Family.IPV4): ["192.0.2.1"],
    }

    def lookup(self, hostname: str, family: Family, scope: Optional[TimeoutScope] = None) -> List[str]:
        try:
            return list(self.TABLE[(hostname, family)])
        except KeyError:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known") from None


def _registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.add(
        Tool(
            name="resolve_hostname",
            description="Convert a hostname to its corresponding IP addresses",
            input_schema=RESOLVE_HOSTNAME_SCHEMA,
            handler=resolve_hostname_handler(
                HostnameResolutionTool(timeout=2.0, resolver=StaticResolver()),
                ReportEncoder(),
            ),
        )
    )
    return registry


@pytest.fixture
def client():
    app = create_app(Settings(), registry=_registry())
    with TestClient(app) as c:
        yield c


def _report(resp) -> dict:
    body = resp.json()
    assert body["isError"] is False
    return json.loads(body["content"][0]["text"])


# ----------------------------
# HTTP surface
# ----------------------------
def test_list_tools(client):
    resp = client.get("/tools")
    assert resp.status_code == 200

    (tool,) = resp.json()["tools"]
    assert tool["name"] == "resolve_hostname"
    assert tool["inputSchema"]["required"] == ["hostname"]
    assert tool["inputSchema"]["properties"]["ip_version"]["enum"] == ["ipv4", "ipv6", "both"]


def test_call_resolve_hostname(client):
    resp = client.post("/tools/resolve_hostname", json={"arguments": {"hostname": "localhost"}})
    assert resp.status_code == 200

    data = _report(resp)
    assert data["ip_version"] == "ipv4"
    assert data["ipv4_addresses"] == ["127.0.0.1"]
    assert data["failed"] is False


def test_resolution_failure_is_a_successful_call(client):
    resp = client.post(
        "/tools/resolve_hostname",
        json={"arguments": {"hostname": "nope.invalid", "ip_version": "ipv4"}},
    )
    assert resp.status_code == 200

    data = _report(resp)
    assert data["failed"] is True
    assert data["error"]
    assert "ipv4_addresses" not in data


def test_partial_success_over_http(client):
    resp = client.post(
        "/tools/resolve_hostname",
        json={"arguments": {"hostname": "v4only.example", "ip_version": "both"}},
    )
    data = _report(resp)
    assert data["failed"] is False
    assert data["ipv4_addresses"] == ["192.0.2.1"]
    assert data["ipv6_error"]


@pytest.mark.parametrize(
    "payload, fragment",
    [
        ({"arguments": {"ip_version": "ipv4"}}, 'parameter "hostname" is required'),
        ({"arguments": {"hostname": ""}}, 'parameter "hostname" is required'),
        ({"arguments": {"hostname": 12345}}, "failed to parse tool input"),
        ({}, 'parameter "hostname" is required'),
    ],
)
def test_invalid_arguments_are_400(client, payload, fragment):
    resp = client.post("/tools/resolve_hostname", json=payload)
    assert resp.status_code == 400
    assert fragment in resp.json()["detail"]


def test_unknown_tool_is_404(client):
    resp = client.post("/tools/whois_query", json={"arguments": {"domain": "example.com"}})
    assert resp.status_code == 404
    assert "whois_query" in resp.json()["detail"]


def test_encoder_failure_is_500():
    def broken(arguments, cancel=None) -> ToolResult:
        return ReportEncoder().tool_result({"value": float("nan")})

    registry = ToolRegistry()
    registry.add(Tool(name="broken", description="", input_schema={"type": "object"}, handler=broken))

    with TestClient(create_app(Settings(), registry=registry)) as c:
        resp = c.post("/tools/broken", json={"arguments": {}})
    assert resp.status_code == 500
    assert "error generating JSON" in resp.json()["detail"]


def test_shutdown_sets_cancellation_event():
    app = create_app(Settings(), registry=_registry())
    with TestClient(app):
        assert not app.state.shutdown.is_set()
    assert app.state.shutdown.is_set()


# ----------------------------
# Registry
# ----------------------------
def test_registry_rejects_duplicates_and_unknown_names():
    registry = _registry()
    with pytest.raises(ValueError):
        registry.add(registry.get("resolve_hostname"))
    with pytest.raises(UnknownTool):
        registry.get("nope")


def test_build_registry_uses_configured_resolver():
    registry = build_registry(Settings(timeout=1.5))
    assert [t.name for t in registry.tools()] == ["resolve_hostname"]


# ----------------------------
# Configuration
# ----------------------------
def test_settings_from_env():
    s = Settings.from_env(
        {
            "DOMAINTOOLS_TIMEOUT": "2.5",
            "DOMAINTOOLS_RESOLVER": "DNSPython",
            "DOMAINTOOLS_CONCURRENT_LOOKUPS": "off",
            "DOMAINTOOLS_PORT": "8080",
            "DOMAINTOOLS_LOG_LEVEL": "debug",
        }
    )
    assert s.timeout == 2.5
    assert s.resolver == "dnspython"
    assert s.concurrent_lookups is False
    assert s.port == 8080
    assert s.log_level == "DEBUG"


def test_settings_defaults():
    s = Settings.from_env({})
    assert s == Settings()
    assert s.timeout == 5.0
    assert s.resolver == "system"


@pytest.mark.parametrize(
    "env",
    [
        {"DOMAINTOOLS_TIMEOUT": "soon"},
        {"DOMAINTOOLS_TIMEOUT": "0"},
        {"DOMAINTOOLS_RESOLVER": "carrier-pigeon"},
        {"DOMAINTOOLS_CONCURRENT_LOOKUPS": "maybe"},
        {"DOMAINTOOLS_PORT": "http"},
        {"DOMAINTOOLS_PORT": "70000"},
        {"DOMAINTOOLS_LOG_LEVEL": "chatty"},
        {"DOMAINTOOLS_LOG_LEVEL": "trace"},
    ],
)
def test_settings_reject_bad_values(env):
    with pytest.raises(ConfigError):
        Settings.from_env(env)


def test_settings_flags_ignore_unset_values():
    s = Settings.from_env({}, timeout=1.0, resolver=None)
    assert s.timeout == 1.0
    assert s.resolver == "system"


def test_settings_flags_win_over_bad_environment():
    env = {"DOMAINTOOLS_RESOLVER": "bogus", "DOMAINTOOLS_TIMEOUT": "soon", "DOMAINTOOLS_LOG_LEVEL": "chatty"}
    s = Settings.from_env(env, resolver="system", timeout=2.0, log_level="debug")
    assert s.resolver == "system"
    assert s.timeout == 2.0
    assert s.log_level == "DEBUG"

    with pytest.raises(ConfigError):
        Settings.from_env(env, timeout=2.0, log_level="debug")


def test_settings_reject_bad_log_level_flag():
    with pytest.raises(ConfigError) as exc:
        Settings(log_level="CHATTY")
    assert "log level" in str(exc.value)


def test_resolver_backends_are_registered():
    from resolution.lookup import RESOLVERS, make_resolver

    assert RESOLVERS == {"system": SystemResolver, "dnspython": DNSPythonResolver}
    assert isinstance(make_resolver("system"), SystemResolver)
    with pytest.raises(ValueError):
        make_resolver("carrier-pigeon")


# ----------------------------
# CLI
# ----------------------------
@pytest.fixture
def fake_cli_registry(monkeypatch):
    monkeypatch.setattr(cli, "build_registry", lambda settings: _registry())
    for name in ("TIMEOUT", "RESOLVER", "CONCURRENT_LOOKUPS", "HOST", "PORT", "LOG_LEVEL"):
        monkeypatch.delenv(f"DOMAINTOOLS_{name}", raising=False)


def test_cli_resolve_prints_report(fake_cli_registry, capsys):
    assert cli.main(["resolve", "localhost", "--ip-version", "both"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["ip_version"] == "both"
    assert data["ipv4_addresses"] == ["127.0.0.1"]
    assert data["ipv6_addresses"] == ["::1"]


def test_cli_failed_resolution_still_exits_zero(fake_cli_registry, capsys):
    assert cli.main(["resolve", "nope.invalid", "--pretty"]) == 0
    assert json.loads(capsys.readouterr().out)["failed"] is True


def test_cli_invalid_input_exits_two(fake_cli_registry, capsys):
    assert cli.main(["resolve", "   "]) == 2
    assert 'parameter "hostname" is required' in capsys.readouterr().err


def test_cli_bad_timeout_exits_two(fake_cli_registry, capsys):
    assert cli.main(["--timeout", "-1", "resolve", "localhost"]) == 2
    assert "Invalid configuration" in capsys.readouterr().err


def test_cli_bad_log_level_exits_two(fake_cli_registry, capsys):
    assert cli.main(["--log-level", "chatty", "resolve", "localhost"]) == 2
    assert "log level" in capsys.readouterr().err


def test_cli_bad_log_level_from_env_exits_two(fake_cli_registry, monkeypatch, capsys):
    monkeypatch.setenv("DOMAINTOOLS_LOG_LEVEL", "chatty")
    assert cli.main(["resolve", "localhost"]) == 2
    assert "Invalid configuration" in capsys.readouterr().err


def test_cli_flag_fixes_bad_resolver_env(fake_cli_registry, monkeypatch, capsys):
    monkeypatch.setenv("DOMAINTOOLS_RESOLVER", "bogus")
    assert cli.main(["--resolver", "system", "resolve", "localhost"]) == 0
    assert json.loads(capsys.readouterr().out)["ipv4_addresses"] == ["127.0.0.1"]


# ----------------------------
# Resolver without system configuration
# ----------------------------
@pytest.fixture
def no_resolv_conf(monkeypatch):
    def unconfigured(*args, **kwargs):
        raise dns.resolver.NoResolverConfiguration("no nameservers")

    monkeypatch.setattr(dns.resolver, "Resolver", unconfigured)


def test_build_registry_without_resolver_config_is_config_error(no_resolv_conf):
    with pytest.raises(ConfigError) as exc:
        build_registry(Settings(resolver="dnspython"))
    assert "dnspython" in str(exc.value)


def test_cli_without_resolver_config_exits_two(no_resolv_conf, monkeypatch, capsys):
    for name in ("TIMEOUT", "RESOLVER", "CONCURRENT_LOOKUPS", "HOST", "PORT", "LOG_LEVEL"):
        monkeypatch.delenv(f"DOMAINTOOLS_{name}", raising=False)

    assert cli.main(["--resolver", "dnspython", "resolve", "localhost"]) == 2
    assert "Invalid configuration" in capsys.readouterr().err


# ----------------------------
# Per-request cancellation
# ----------------------------
class _FakeRequest:
    """Reports a disconnect after `connected_polls` checks."""

    def __init__(self, connected_polls: int):
        self.connected_polls = connected_polls
        self.polls = 0

    async def is_disconnected(self) -> bool:
        self.polls += 1
        return self.polls > self.connected_polls


def test_client_disconnect_cancels_call():
    cancel, shutdown = threading.Event(), threading.Event()
    request = _FakeRequest(connected_polls=2)

    asyncio.run(asyncio.wait_for(watch_cancellation(request, cancel, shutdown, interval=0.01), timeout=5))

    assert cancel.is_set()
    assert request.polls == 3


def test_shutdown_cancels_call_with_connected_client():
    cancel, shutdown = threading.Event(), threading.Event()
    shutdown.set()

    asyncio.run(asyncio.wait_for(watch_cancellation(_FakeRequest(10**6), cancel, shutdown, interval=0.01), timeout=5))

    assert cancel.is_set()


def test_connected_client_leaves_call_running():
    cancel, shutdown = threading.Event(), threading.Event()

    async def run_briefly():
        task = asyncio.ensure_future(watch_cancellation(_FakeRequest(10**6), cancel, shutdown, interval=0.01))
        await asyncio.sleep(0.1)
        task.cancel()

    asyncio.run(run_briefly())
    assert not cancel.is_set()
