"""Core module for ModernizeAI."""

from .models import (
    Severity,
    SEVERITY_ORDER,
    severity_from_score,
    FindingSource,
    AnalysisType,
    CloudProvider,
    VulnerabilityFinding,
    FileVulnerabilityReport,
    DependencyVulnerability,
    DependencyCheckResult,
    EnhancedDependencyVulnerability,
    CveAnalysisResult,
    CloudReadinessIssue,
    CloudAssessment,
    MigrationStep,
    MigrationAnalysis,
    ArchitectureAnalysis,
    FileAst,
)

from .config import (
    Config,
    ConfigError,
    LLMConfig,
    ScanConfig,
    DependencyCheckConfig,
    PackagingConfig,
    OutputConfig,
)

__all__ = [
    # Models
    "Severity",
    "SEVERITY_ORDER",
    "severity_from_score",
    "FindingSource",
    "AnalysisType",
    "CloudProvider",
    "VulnerabilityFinding",
    "FileVulnerabilityReport",
    "DependencyVulnerability",
    "DependencyCheckResult",
    "EnhancedDependencyVulnerability",
    "CveAnalysisResult",
    "CloudReadinessIssue",
    "CloudAssessment",
    "MigrationStep",
    "MigrationAnalysis",
    "ArchitectureAnalysis",
    "FileAst",
    # Configuration
    "Config",
    "ConfigError",
    "LLMConfig",
    "ScanConfig",
    "DependencyCheckConfig",
    "PackagingConfig",
    "OutputConfig",
]
