"""Analyses behind the cve, architect and cloud-readiness commands."""

from .ast_generator import AstGenerator
from .cve_analyzer import CveAnalyzer
from .cloud_readiness import CloudReadinessAnalyzer
from .migration_analyzer import MigrationAnalyzer
from .architect import ArchitectAnalyzer, ArchitectResult

__all__ = [
    "AstGenerator",
    "CveAnalyzer",
    "CloudReadinessAnalyzer",
    "MigrationAnalyzer",
    "ArchitectAnalyzer",
    "ArchitectResult",
]
