"""Source file discovery."""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Any


logger = logging.getLogger(__name__)


SKIP_DIRECTORIES = frozenset({
    'node_modules',
    '.git',
    '.svn',
    '.hg',
    'dist',
    'build',
    'target',
    'bin',
    'obj',
    '.idea',
    '.vscode',
    '__pycache__',
    '.pytest_cache',
    'coverage',
    '.nyc_output',
    'logs',
    'tmp',
    'temp',
    '.DS_Store',
})


class FileScanError(Exception):
    """Raised when the scan target cannot be accessed."""
    pass


class FileScanner:
    """Finds files with the given extensions below a path."""

    def __init__(self, extensions: Iterable[str]):
        self.extensions = {ext.lower() for ext in extensions}

    def scan_directory(self, target_path: Path, recursive: bool = True) -> List[Path]:
        """Return sorted absolute paths of matching files."""
        target_path = Path(target_path)
        files: List[Path] = []

        try:
            if target_path.is_file():
                if self.should_include_file(target_path):
                    files.append(target_path.resolve())
            elif target_path.is_dir():
                self._scan_recursive(target_path, files, recursive)
            else:
                raise FileScanError(f"Cannot access path: {target_path}")
        except OSError as e:
            raise FileScanError(f"Cannot access path: {target_path}. {e}")

        return sorted(files)

    def _scan_recursive(self, dir_path: Path, files: List[Path], recursive: bool) -> None:
        try:
            with os.scandir(dir_path) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.warning(f"Cannot read directory {dir_path}: {e}")
            return

        for entry in entries:
            full_path = Path(entry.path)
            try:
                if entry.is_file():
                    if self.should_include_file(full_path):
                        files.append(full_path.resolve())
                elif entry.is_dir() and recursive:
                    if not self.should_skip_directory(entry.name):
                        self._scan_recursive(full_path, files, recursive)
            except OSError as e:
                logger.warning(f"Cannot access {full_path}: {e}")

    def should_include_file(self, file_path: Path) -> bool:
        return file_path.suffix.lower() in self.extensions

    @staticmethod
    def should_skip_directory(dir_name: str) -> bool:
        return dir_name in SKIP_DIRECTORIES or dir_name.startswith('.')

    def get_file_info(self, file_path: Path) -> Dict[str, Any]:
        """Size, modification time and CWD-relative path of a file."""
        stats = Path(file_path).stat()
        return {
            'size': stats.st_size,
            'mtime': datetime.fromtimestamp(stats.st_mtime),
            'relative_path': os.path.relpath(file_path, Path.cwd()),
        }

    def get_directory_stats(self, target_path: Path, recursive: bool = True) -> Dict[str, Any]:
        """Count matching files, their total size and the per-extension tally."""
        files = self.scan_directory(target_path, recursive)
        extensions: Dict[str, int] = {}
        total_size = 0

        for file_path in files:
            total_size += file_path.stat().st_size
            ext = file_path.suffix.lower()
            extensions[ext] = extensions.get(ext, 0) + 1

        return {
            'file_count': len(files),
            'total_size': total_size,
            'extensions': extensions,
        }

    def filter_files(self,
                     files: List[Path],
                     max_size: Optional[int] = None,
                     min_size: Optional[int] = None,
                     modified_after: Optional[datetime] = None,
                     modified_before: Optional[datetime] = None) -> List[Path]:
        """Filter files by size (bytes) or modification time."""
        kept = []
        for file_path in files:
            try:
                stats = Path(file_path).stat()
            except OSError:
                continue

            mtime = datetime.fromtimestamp(stats.st_mtime)
            if max_size is not None and stats.st_size > max_size:
                continue
            if min_size is not None and stats.st_size < min_size:
                continue
            if modified_after is not None and mtime < modified_after:
                continue
            if modified_before is not None and mtime > modified_before:
                continue
            kept.append(file_path)

        return kept
