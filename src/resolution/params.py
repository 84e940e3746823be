from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .errors import InvalidArgument

DEFAULT_IP_VERSION = "ipv4"


@dataclass(frozen=True)
class ResolutionRequest:
    hostname: str
    ip_version: str = DEFAULT_IP_VERSION


# JSON names for the Python types an argument map can carry after json.loads
_JSON_TYPES = (
    (bool, "bool"),
    ((int, float), "number"),
    (str, "string"),
    (list, "array"),
    (dict, "object"),
)


def json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    # bool before number: bool is an int subclass
    for py_type, name in _JSON_TYPES:
        if isinstance(value, py_type):
            return name
    return type(value).__name__


def _optional_string(arguments: Mapping[str, Any], field: str) -> Optional[str]:
    """
    Pull a string field out of an untyped argument map.

    Missing and null both read as "not provided"; any other non-string value is
    a type mismatch that names the field and both types.
    """
    value = arguments.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        actual = json_type_name(value)
        raise InvalidArgument(
            f'failed to parse tool input: invalid value for field "{field}": '
            f'expected "string" but got "{actual}"',
            field=field,
            expected="string",
            actual=actual,
        )
    return value


def parse_resolution_request(arguments: Any) -> ResolutionRequest:
    """
    Validate raw tool arguments into a ResolutionRequest.

    Args:
        arguments: Untyped argument payload (normally a dict decoded from JSON).

    Returns:
        ResolutionRequest with the hostname trimmed and ip_version defaulted.

    Raises:
        InvalidArgument: if the payload is not an object, a field has the wrong
            type, or hostname is missing/empty.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        actual = json_type_name(arguments)
        raise InvalidArgument(
            f'failed to parse tool input: expected "object" but got "{actual}"',
            expected="object",
            actual=actual,
        )

    hostname = (_optional_string(arguments, "hostname") or "").strip()
    ip_version = (_optional_string(arguments, "ip_version") or "").strip()

    if not hostname:
        raise InvalidArgument('parameter "hostname" is required', field="hostname")

    # Unrecognized selectors are kept as-is; the aggregator routes them to the dual path.
    return ResolutionRequest(hostname=hostname, ip_version=ip_version or DEFAULT_IP_VERSION)

