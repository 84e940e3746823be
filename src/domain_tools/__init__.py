"""
Domain tools: network diagnostic operations exposed as callable tools.

Public entrypoints: Settings, build_registry, create_app (domain_tools.app)
"""

from .config import ConfigError, Settings
from .tools import ToolRegistry, build_registry

__all__ = ["ConfigError", "Settings", "ToolRegistry", "build_registry"]
