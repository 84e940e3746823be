"""
Wire encoding for tool results.

Public entrypoints: ReportEncoder, ToolResult
"""

from .encoder import EncodingError, ReportEncoder, ToolResult

__all__ = ["EncodingError", "ReportEncoder", "ToolResult"]
