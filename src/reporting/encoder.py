from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List

from fastapi.encoders import jsonable_encoder

from resolution.errors import DomainToolsError


class EncodingError(DomainToolsError):
    """The report could not be turned into JSON. Distinct from any resolution failure."""


@dataclass(frozen=True)
class ToolResult:
    """
    Tool call result envelope: one text payload carrying the encoded report.

    is_error is reserved for tool-level failures; a report with failed=true is
    still a successful result.
    """

    text: str
    is_error: bool = False

    def to_dict(self) -> Dict[str, Any]:
        content: List[Dict[str, Any]] = [{"type": "text", "text": self.text}]
        return {"content": content, "isError": self.is_error}


class ReportEncoder:
    """
    Turns result objects into the wire format.

    Output is deterministic: keys sorted, compact separators, so two reports with
    equal contents encode to equal strings.
    """

    def encode(self, result: Any) -> str:
        try:
            payload = self._to_json(result)
            return json.dumps(payload, sort_keys=True, separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError) as e:
            raise EncodingError(f"error generating JSON: {e}") from e

    def tool_result(self, result: Any) -> ToolResult:
        return ToolResult(text=self.encode(result))

    def _to_json(self, obj: Any) -> Any:
        """
        Convert a result into JSON-friendly structures.

        Objects exposing to_dict() are flattened through it first; jsonable_encoder
        then handles anything nested (enums, tuples, datetimes).
        """
        if hasattr(obj, "to_dict"):
            return jsonable_encoder(obj.to_dict())
        return jsonable_encoder(obj)
