"""
ModernizeAI: LLM-assisted modernization analysis for legacy codebases.

This package combines regex heuristics, external scanners and LLM reviews
to report vulnerabilities, plan framework migrations and score cloud
readiness.
"""

__version__ = "0.1.0"

from .core.models import Severity, CveAnalysisResult, CloudAssessment, ArchitectureAnalysis, MigrationAnalysis
from .core.config import Config

# For convenient imports
from .cli.main import main as cli_main

__all__ = [
    "Severity",
    "CveAnalysisResult",
    "CloudAssessment",
    "ArchitectureAnalysis",
    "MigrationAnalysis",
    "Config",
    "cli_main",
]
