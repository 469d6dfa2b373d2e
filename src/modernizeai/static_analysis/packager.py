"""Packs a codebase into a single text blob for LLM prompts."""

import json
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Pattern, Dict, Any

from .base import BaseExternalTool, ExternalToolError


DEFAULT_EXCLUDE_PATTERNS = ["node_modules", ".git", "target", "build", "*.class"]
UNREADABLE_MARKER = "[Binary or unreadable file]"


@dataclass
class PackagedCodebase:
    """Packed text plus how it was produced."""
    content: str
    packager: str
    file_count: Optional[int] = None

    @property
    def size(self) -> int:
        return len(self.content)

    def preview(self, length: int = 500) -> str:
        return self.content[:length] + "..."


def glob_to_regex(pattern: str) -> Pattern:
    """Translate a glob-ish exclude pattern into an unanchored regex."""
    return re.compile(re.escape(pattern).replace(r'\*', '.*'))


class CodebasePackager(BaseExternalTool):
    """Packages a project with repomix, or by walking the tree itself."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.exclude_patterns: List[str] = list(
            self.config.get('exclude_patterns') or DEFAULT_EXCLUDE_PATTERNS
        )
        self.max_files: int = self.config.get('max_files', 100)
        self.timeout: int = self.config.get('timeout_seconds', 120)

    def get_tool_name(self) -> str:
        return "repomix"

    def is_available(self) -> bool:
        return self.command_available(["npx", "--version"])

    def package(self, project_path: Path) -> PackagedCodebase:
        """Package the project; falls back to manual packaging on any repomix failure."""
        project_path = Path(project_path).resolve()
        try:
            return PackagedCodebase(content=self._run_repomix(project_path), packager="repomix")
        except (ExternalToolError, OSError) as e:
            self.logger.warning(f"Failed to use repomix, falling back to manual packaging: {e}")
            return self.manual_package(project_path)

    def _run_repomix(self, project_path: Path) -> str:
        with tempfile.TemporaryDirectory(prefix="modernizeai-") as temp_dir:
            config_path = Path(temp_dir) / "repomix.config.json"
            output_path = Path(temp_dir) / "packaged.txt"

            repomix_config = {
                'output': {
                    'filePath': str(output_path),
                    'style': 'plain',
                },
                'include': ['**/*'],
                'ignore': {
                    'useGitignore': True,
                    'useDefaultPatterns': True,
                    'customPatterns': self.exclude_patterns,
                },
            }
            config_path.write_text(json.dumps(repomix_config, indent=2), encoding='utf-8')

            self.run_command(
                ["npx", "repomix", "--config", str(config_path), str(project_path)],
                timeout=self.timeout,
            )

            if not output_path.exists():
                raise ExternalToolError("repomix did not produce an output file")
            return output_path.read_text(encoding='utf-8', errors='replace')

    def manual_package(self, project_path: Path) -> PackagedCodebase:
        """Concatenate up to ``max_files`` files as ``=== path ===`` sections."""
        project_path = Path(project_path).resolve()
        exclude_regexes = [glob_to_regex(p) for p in self.exclude_patterns]
        files = self._collect_files(project_path, project_path, exclude_regexes)

        parts = [f"Project: {project_path}\nFiles: {len(files)}\n\n"]
        for file_path in files[:self.max_files]:
            relative_path = file_path.relative_to(project_path).as_posix()
            try:
                content = file_path.read_text(encoding='utf-8')
            except (OSError, UnicodeDecodeError):
                content = UNREADABLE_MARKER
            parts.append(f"=== {relative_path} ===\n{content}\n\n")

        if len(files) > self.max_files:
            parts.append(f"\n... and {len(files) - self.max_files} more files (truncated for brevity)\n")

        return PackagedCodebase(content="".join(parts), packager="manual", file_count=len(files))

    def _collect_files(self, directory: Path, root: Path, exclude_regexes: List[Pattern]) -> List[Path]:
        files: List[Path] = []
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            self.logger.debug(f"Skipping unreadable directory {directory}: {e}")
            return files

        for entry in entries:
            full_path = Path(entry.path)
            relative_path = full_path.relative_to(root).as_posix()
            if any(regex.search(relative_path) for regex in exclude_regexes):
                continue
            try:
                if entry.is_dir():
                    files.extend(self._collect_files(full_path, root, exclude_regexes))
                elif entry.is_file():
                    files.append(full_path)
            except OSError:
                continue

        return files
