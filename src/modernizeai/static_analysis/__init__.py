"""External tool integrations and regex heuristics."""

from .base import BaseExternalTool, ExternalToolError, ToolNotFoundError, ToolExecutionError
from .dependency_check import DependencyCheckAnalyzer
from .packager import CodebasePackager, PackagedCodebase
from .security_patterns import SECURITY_PATTERNS, scan_content, scan_file

__all__ = [
    "BaseExternalTool",
    "ExternalToolError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "DependencyCheckAnalyzer",
    "CodebasePackager",
    "PackagedCodebase",
    "SECURITY_PATTERNS",
    "scan_content",
    "scan_file",
]
