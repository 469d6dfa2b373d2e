"""Base class for external command-line tool integrations."""

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional
from pathlib import Path
import logging
import subprocess


logger = logging.getLogger(__name__)


class ExternalToolError(Exception):
    """Base exception for external tool errors."""
    pass


class ToolNotFoundError(ExternalToolError):
    """Raised when a required tool is not found."""
    pass


class ToolExecutionError(ExternalToolError):
    """Raised when tool execution fails."""
    pass


class BaseExternalTool(ABC):
    """Base class for tools that run as subprocesses."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.tool_name = self.get_tool_name()
        self.logger = logging.getLogger(f"{__name__}.{self.tool_name}")

    @abstractmethod
    def get_tool_name(self) -> str:
        """Get the name of the tool."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the tool is available on the system."""
        pass

    def get_version(self) -> Optional[str]:
        """Get tool version. Override in subclasses."""
        return None

    @staticmethod
    def command_available(cmd: List[str], timeout: int = 10) -> bool:
        """True when ``cmd`` (usually a ``--version`` call) exits cleanly."""
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
            return result.returncode == 0
        except (subprocess.SubprocessError, OSError):
            return False

    def run_command(self,
                    cmd: List[str],
                    timeout: int,
                    cwd: Optional[Path] = None,
                    check: bool = True,
                    secrets: Optional[List[str]] = None) -> subprocess.CompletedProcess:
        """Run a command, translating failures into tool errors.

        Values listed in ``secrets`` are masked in the debug log.
        """
        display = " ".join(cmd)
        for secret in secrets or []:
            if secret:
                display = display.replace(secret, "***")
        self.logger.debug(f"Running {self.tool_name} command: {display}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=str(cwd) if cwd else None,
            )
        except FileNotFoundError:
            raise ToolNotFoundError(f"{cmd[0]} is not available")
        except subprocess.TimeoutExpired:
            raise ToolExecutionError(f"{self.tool_name} timed out after {timeout}s")
        except OSError as e:
            raise ToolExecutionError(f"Failed to run {cmd[0]}: {e}")

        if check and result.returncode != 0:
            error_msg = f"{cmd[0]} failed with exit code {result.returncode}: {result.stderr.strip()}"
            self.logger.debug(error_msg)
            raise ToolExecutionError(error_msg)

        return result
