"""Core data models for ModernizeAI."""

from enum import Enum
from typing import List, Optional, Dict, Any
from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator


class Severity(str, Enum):
    """Severity levels shared by every analysis."""

    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def normalize(cls, value: Any, default: Optional["Severity"] = None) -> "Severity":
        """Map loose strings like 'HIGH' or 'moderate' onto a severity."""
        if isinstance(value, Severity):
            return value
        text = str(value or "").strip().lower()
        aliases = {
            'critical': cls.CRITICAL,
            'high': cls.HIGH,
            'medium': cls.MEDIUM,
            'moderate': cls.MEDIUM,
            'low': cls.LOW,
            'info': cls.LOW,
            'informational': cls.LOW,
        }
        return aliases.get(text, default or cls.MEDIUM)


SEVERITY_ORDER = [Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL]


def severity_from_score(score: float) -> Severity:
    """Derive a severity from a 0-10 score such as a CVSS base score."""
    if score >= 9.0:
        return Severity.CRITICAL
    elif score >= 7.0:
        return Severity.HIGH
    elif score >= 4.0:
        return Severity.MEDIUM
    else:
        return Severity.LOW


class FindingSource(str, Enum):
    """Where a finding came from."""

    HEURISTIC = "heuristic"
    LLM = "llm"
    DEPENDENCY_CHECK = "dependency_check"


class AnalysisType(str, Enum):
    """The three analyses exposed on the command line."""

    CVE = "cve"
    ARCHITECT = "architect"
    CLOUD_READINESS = "cloud-readiness"


class CloudProvider(str, Enum):
    """Supported cloud deployment targets."""

    AWS = "aws"
    AZURE = "azure"
    GCP = "gcp"
    ATLAS = "atlas"
    GENERIC = "generic"


# ---------------------------------------------------------------------------
# Vulnerability scan
# ---------------------------------------------------------------------------


class VulnerabilityFinding(BaseModel):
    """A single vulnerability found in a source file."""

    type: str
    severity: Severity
    line_number: int = 0
    description: str
    cve_id: Optional[str] = None
    recommendation: Optional[str] = None
    source: FindingSource = FindingSource.HEURISTIC

    @field_validator('severity', mode='before')
    @classmethod
    def coerce_severity(cls, v):
        return Severity.normalize(v)

    @field_validator('line_number', mode='before')
    @classmethod
    def coerce_line_number(cls, v):
        try:
            return max(0, int(v))
        except (TypeError, ValueError):
            return 0


class FileVulnerabilityReport(BaseModel):
    """All findings for one file."""

    file_path: str
    vulnerabilities: List[VulnerabilityFinding] = Field(default_factory=list)


class DependencyProjectInfo(BaseModel):
    """Header information from a dependency-check report."""

    report_date: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    scan_duration: str = "0s"
    dependencies: int = 0
    vulnerable_dependencies: int = 0


class DependencyVulnerability(BaseModel):
    """A known vulnerability in a third-party dependency."""

    name: str
    cve_id: str
    severity: Severity
    cvss_score: float = 0.0
    description: str = "No description available"
    references: List[str] = Field(default_factory=list)
    affected_artifact: str
    file_name: str
    solution: Optional[str] = None


class DependencyCheckResult(BaseModel):
    """Outcome of one external dependency scan."""

    project_info: DependencyProjectInfo = Field(default_factory=DependencyProjectInfo)
    vulnerabilities: List[DependencyVulnerability] = Field(default_factory=list)
    scan_success: bool = False
    report_path: Optional[str] = None
    xml_report_path: Optional[str] = None

    @classmethod
    def failed(cls) -> "DependencyCheckResult":
        """Empty result used whenever the scanner could not run."""
        return cls(scan_success=False)


class LLMVulnerabilityInsight(BaseModel):
    """LLM commentary on a dependency vulnerability."""

    risk_assessment: str
    remediation_priority: str
    migration_complexity: str


class EnhancedDependencyVulnerability(DependencyVulnerability):
    """Dependency vulnerability enriched with LLM insight."""

    llm_analysis: Optional[LLMVulnerabilityInsight] = None
    action_required: bool = False
    final_recommendation: str = ""


class VulnerabilitySummary(BaseModel):
    critical_count: int = 0
    high_count: int = 0
    medium_count: int = 0
    low_count: int = 0
    action_required_count: int = 0


class MigrationPhase(BaseModel):
    phase: str
    priority: int
    estimated_duration: str
    activities: List[str] = Field(default_factory=list)


class SecurityMigrationPlan(BaseModel):
    total_estimated_duration: str
    phases: List[MigrationPhase] = Field(default_factory=list)


class CveAnalysisResult(BaseModel):
    """Combined result of the vulnerability scan."""

    dependency_check: DependencyCheckResult = Field(default_factory=DependencyCheckResult.failed)
    enhanced_vulnerabilities: List[EnhancedDependencyVulnerability] = Field(default_factory=list)
    file_reports: List[FileVulnerabilityReport] = Field(default_factory=list)
    total_files: int = 0
    vulnerable_files: int = 0
    summary: VulnerabilitySummary = Field(default_factory=VulnerabilitySummary)
    overall_risk_level: Severity = Severity.LOW
    immediate_action_required: bool = False
    strategic_recommendations: List[str] = Field(default_factory=list)
    migration_plan: Optional[SecurityMigrationPlan] = None

    def all_severities(self) -> List[Severity]:
        """Severities of every dependency and source finding."""
        severities = [v.severity for v in self.enhanced_vulnerabilities]
        for report in self.file_reports:
            severities.extend(v.severity for v in report.vulnerabilities)
        return severities


# ---------------------------------------------------------------------------
# Cloud readiness
# ---------------------------------------------------------------------------


class CloudReadinessIssue(BaseModel):
    """A cloud-readiness problem in a file."""

    category: str = "General"
    severity: Severity = Severity.MEDIUM
    description: str
    recommendation: Optional[str] = None

    @field_validator('severity', mode='before')
    @classmethod
    def coerce_severity(cls, v):
        severity = Severity.normalize(v)
        # Readiness issues only use the lower three levels
        return Severity.HIGH if severity == Severity.CRITICAL else severity


class CloudAssessment(BaseModel):
    """Readiness assessment for one file."""

    file_path: str
    readiness_score: float = Field(ge=0.0, le=10.0)
    issues: List[CloudReadinessIssue] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    cloud_provider: CloudProvider = CloudProvider.GENERIC
    assessment_timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class ReadinessSummary(BaseModel):
    high_readiness: int = 0
    medium_readiness: int = 0
    low_readiness: int = 0


# ---------------------------------------------------------------------------
# Migration planning
# ---------------------------------------------------------------------------


class MigrationStep(BaseModel):
    """One step in a migration plan."""

    title: str
    description: str = ""
    priority: str = "Medium"
    category: str = "Code"
    estimated_hours: Optional[float] = None
    effort: Optional[str] = None
    code_changes: List[str] = Field(default_factory=list)

    @field_validator('priority', mode='before')
    @classmethod
    def coerce_priority(cls, v):
        value = str(v or "Medium").capitalize()
        return value if value in ("High", "Medium", "Low") else "Medium"

    @field_validator('category', mode='before')
    @classmethod
    def coerce_category(cls, v):
        value = str(v or "Code").capitalize()
        allowed = ("Dependencies", "Configuration", "Code", "Testing", "Documentation")
        return value if value in allowed else "Code"


class FileStructureChange(BaseModel):
    type: str = "modify"
    description: str
    before: Optional[str] = None
    after: Optional[str] = None
    reason: Optional[str] = None


class FrameworkChange(BaseModel):
    component: str
    action: str
    description: str = ""
    before: Optional[str] = None
    after: Optional[str] = None


class CodeExample(BaseModel):
    description: str
    before: str = ""
    after: str = ""


class DependencyChanges(BaseModel):
    remove: List[str] = Field(default_factory=list)
    add: List[str] = Field(default_factory=list)
    update: List[str] = Field(default_factory=list)


class RiskAssessment(BaseModel):
    level: Severity = Severity.MEDIUM
    factors: List[str] = Field(default_factory=list)
    mitigations: List[str] = Field(default_factory=list)

    @field_validator('level', mode='before')
    @classmethod
    def coerce_level(cls, v):
        return Severity.normalize(v)


class TargetAst(BaseModel):
    file_path: str
    changes: List[str] = Field(default_factory=list)
    new_dependencies: List[str] = Field(default_factory=list)


class MigrationAnalysis(BaseModel):
    """Static and LLM migration plan merged together."""

    current_framework: str
    target_framework: str
    target_java_version: str
    complexity_score: float = 5
    estimated_effort: str = "Unknown"
    file_structure_changes: List[FileStructureChange] = Field(default_factory=list)
    migration_steps: List[MigrationStep] = Field(default_factory=list)
    target_asts: List[TargetAst] = Field(default_factory=list)
    dependency_changes: DependencyChanges = Field(default_factory=DependencyChanges)
    configuration_changes: List[str] = Field(default_factory=list)
    risk_assessment: RiskAssessment = Field(default_factory=RiskAssessment)
    recommendations: List[str] = Field(default_factory=list)


class ArchitectureAnalysis(BaseModel):
    """LLM answer to 'how do we move this app to Spring Boot'."""

    complexity_score: float = 5
    estimated_effort: str = "Unknown"
    high_level_steps: List[MigrationStep] = Field(default_factory=list)
    framework_changes: List[FrameworkChange] = Field(default_factory=list)
    dependency_changes: DependencyChanges = Field(default_factory=DependencyChanges)
    code_examples: List[CodeExample] = Field(default_factory=list)
    risk_assessment: RiskAssessment = Field(default_factory=RiskAssessment)
    recommendations: List[str] = Field(default_factory=list)
    used_fallback: bool = False


# ---------------------------------------------------------------------------
# AST
# ---------------------------------------------------------------------------


class AstMetadata(BaseModel):
    size: int = 0
    lines: int = 0
    functions: int = 0
    classes: int = 0
    imports: int = 0
    exports: int = 0


class FileAst(BaseModel):
    """Superficial parse summary of a source file."""

    file_path: str
    language: str
    node_count: int = 0
    parser: str = "text"
    metadata: Optional[AstMetadata] = None
    indicators: List[str] = Field(default_factory=list)
    parse_timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def summary(self) -> Dict[str, Any]:
        """Compact view used in LLM prompts."""
        return {
            'filePath': self.file_path,
            'language': self.language,
            'metadata': self.metadata.model_dump() if self.metadata else None,
            'indicators': self.indicators,
        }
