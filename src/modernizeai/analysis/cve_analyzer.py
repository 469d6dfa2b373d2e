"""Vulnerability scan combining heuristics, LLM review and dependency scanning."""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from ..core.models import (
    CveAnalysisResult, DependencyCheckResult, DependencyVulnerability,
    EnhancedDependencyVulnerability, FileVulnerabilityReport, FindingSource,
    LLMVulnerabilityInsight, MigrationPhase, SecurityMigrationPlan, Severity,
    SEVERITY_ORDER, VulnerabilityFinding, VulnerabilitySummary,
)
from ..llm import LLMClient, LLMError, parse_llm_json
from ..llm.prompts import build_cve_prompt, build_dependency_prompt
from ..static_analysis.dependency_check import DependencyCheckAnalyzer
from ..static_analysis.security_patterns import scan_content


logger = logging.getLogger(__name__)


DEFAULT_CVE_RESPONSE: Dict[str, Any] = {"vulnerabilities": []}

ACTION_REQUIRED_SEVERITIES = (Severity.CRITICAL, Severity.HIGH)

REMEDIATION_PRIORITY = {
    Severity.CRITICAL: "Immediate",
    Severity.HIGH: "High",
    Severity.MEDIUM: "Medium",
    Severity.LOW: "Low",
}

ProgressCallback = Callable[[str], None]


def merge_findings(heuristic: List[VulnerabilityFinding],
                   llm: List[VulnerabilityFinding]) -> List[VulnerabilityFinding]:
    """Heuristic findings followed by LLM findings not already reported on the same line."""
    seen = {(f.line_number, f.type.lower()) for f in heuristic}
    merged = list(heuristic)
    for finding in llm:
        key = (finding.line_number, finding.type.lower())
        if key in seen:
            continue
        seen.add(key)
        merged.append(finding)
    return merged


def highest_severity(severities: List[Severity]) -> Severity:
    if not severities:
        return Severity.LOW
    return max(severities, key=SEVERITY_ORDER.index)


class CveAnalyzer:
    """Runs the vulnerability scan for a project."""

    def __init__(self,
                 llm_client: LLMClient,
                 dependency_checker: Optional[DependencyCheckAnalyzer] = None,
                 max_llm_files: int = 50,
                 max_llm_enhancements: int = 10):
        self.llm_client = llm_client
        self.dependency_checker = dependency_checker
        self.max_llm_files = max_llm_files
        self.max_llm_enhancements = max_llm_enhancements

    # ------------------------------------------------------------------
    # Source files
    # ------------------------------------------------------------------

    def analyze_file(self, file_path: str, content: str, use_llm: bool = True) -> FileVulnerabilityReport:
        heuristic = scan_content(content)
        llm = self._llm_findings(file_path, content) if use_llm else []
        return FileVulnerabilityReport(
            file_path=str(file_path),
            vulnerabilities=merge_findings(heuristic, llm),
        )

    def _llm_findings(self, file_path: str, content: str) -> List[VulnerabilityFinding]:
        try:
            response = self.llm_client.simple_completion(build_cve_prompt(file_path, content))
        except LLMError as e:
            logger.warning(f"LLM review failed for {file_path}: {e}")
            return []

        data = parse_llm_json(response, DEFAULT_CVE_RESPONSE)
        raw_findings = data.get('vulnerabilities')
        if not isinstance(raw_findings, list):
            return []

        findings = []
        for raw in raw_findings:
            if not isinstance(raw, dict):
                continue
            cve_id = raw.get('cveId') or raw.get('cve_id')
            try:
                findings.append(VulnerabilityFinding(
                    type=str(raw.get('type') or 'Unknown'),
                    severity=raw.get('severity'),
                    line_number=raw.get('lineNumber', raw.get('line_number', 0)),
                    description=str(raw.get('description') or ''),
                    cve_id=str(cve_id) if isinstance(cve_id, (str, int)) else None,
                    recommendation=raw.get('recommendation'),
                    source=FindingSource.LLM,
                ))
            except (ValidationError, TypeError) as e:
                logger.debug(f"Dropping malformed LLM finding for {file_path}: {e}")
        return findings

    def analyze_files(self, files: List[Path],
                      progress: Optional[ProgressCallback] = None) -> List[FileVulnerabilityReport]:
        reports = []
        for index, file_path in enumerate(files):
            if progress:
                progress(f"Analyzing {file_path} ({index + 1}/{len(files)})")
            try:
                content = Path(file_path).read_text(encoding='utf-8', errors='replace')
            except OSError as e:
                logger.warning(f"Skipping {file_path}: {e}")
                continue
            try:
                reports.append(self.analyze_file(str(file_path), content, use_llm=index < self.max_llm_files))
            except Exception as e:
                logger.warning(f"Analysis failed for {file_path}: {e}")
                continue
        return reports

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    def enhance_vulnerabilities(self,
                                vulnerabilities: List[DependencyVulnerability],
                                progress: Optional[ProgressCallback] = None) -> List[EnhancedDependencyVulnerability]:
        """Attach LLM insight to the highest-scored vulnerabilities, a fixed one to the rest."""
        ranked = sorted(vulnerabilities, key=lambda v: v.cvss_score, reverse=True)
        enhanced = []
        for index, vuln in enumerate(ranked):
            insight, recommendation = None, None
            if index < self.max_llm_enhancements:
                if progress:
                    progress(f"Reviewing {vuln.cve_id} ({index + 1}/{min(len(ranked), self.max_llm_enhancements)})")
                insight, recommendation = self._llm_insight(vuln)
            if insight is None:
                insight = self.fallback_insight(vuln)

            enhanced.append(EnhancedDependencyVulnerability(
                **vuln.model_dump(),
                llm_analysis=insight,
                action_required=vuln.severity in ACTION_REQUIRED_SEVERITIES,
                final_recommendation=recommendation or self.fallback_recommendation(vuln),
            ))
        return enhanced

    def _llm_insight(self, vuln: DependencyVulnerability):
        prompt = build_dependency_prompt(
            cve_id=vuln.cve_id,
            artifact=vuln.affected_artifact,
            severity=vuln.severity.value,
            cvss_score=vuln.cvss_score,
            description=vuln.description,
        )
        try:
            response = self.llm_client.simple_completion(prompt)
        except LLMError as e:
            logger.warning(f"LLM enhancement failed for {vuln.cve_id}: {e}")
            return None, None

        data = parse_llm_json(response, {})
        if not data.get('riskAssessment'):
            return None, None

        insight = LLMVulnerabilityInsight(
            risk_assessment=str(data['riskAssessment']),
            remediation_priority=str(data.get('remediationPriority') or REMEDIATION_PRIORITY[vuln.severity]),
            migration_complexity=str(data.get('migrationComplexity') or 'Medium'),
        )
        recommendation = data.get('recommendation')
        return insight, str(recommendation) if recommendation else None

    @staticmethod
    def fallback_insight(vuln: DependencyVulnerability) -> LLMVulnerabilityInsight:
        return LLMVulnerabilityInsight(
            risk_assessment=(
                f"{vuln.severity.value} severity vulnerability (CVSS {vuln.cvss_score}) "
                f"in {vuln.affected_artifact}"
            ),
            remediation_priority=REMEDIATION_PRIORITY[vuln.severity],
            migration_complexity="Medium",
        )

    @staticmethod
    def fallback_recommendation(vuln: DependencyVulnerability) -> str:
        if vuln.severity in ACTION_REQUIRED_SEVERITIES:
            return f"Upgrade {vuln.affected_artifact} to a version that fixes {vuln.cve_id} immediately"
        return vuln.solution or f"Review {vuln.cve_id} and plan an upgrade of {vuln.affected_artifact}"

    # ------------------------------------------------------------------
    # Project
    # ------------------------------------------------------------------

    def analyze_project(self, project_path: Path, files: List[Path],
                        enhanced_mode: bool = True,
                        progress: Optional[ProgressCallback] = None) -> CveAnalysisResult:
        dependency_result = DependencyCheckResult.failed()
        if enhanced_mode and self.dependency_checker is not None:
            if progress:
                progress("Running OWASP Dependency-Check...")
            dependency_result = self.dependency_checker.run(project_path)

        enhanced = self.enhance_vulnerabilities(dependency_result.vulnerabilities, progress)
        file_reports = self.analyze_files(files, progress)

        result = CveAnalysisResult(
            dependency_check=dependency_result,
            enhanced_vulnerabilities=enhanced,
            file_reports=file_reports,
            total_files=len(files),
            vulnerable_files=sum(1 for report in file_reports if report.vulnerabilities),
        )
        return self.finalize(result)

    def finalize(self, result: CveAnalysisResult) -> CveAnalysisResult:
        """Fill in the summary, risk level, recommendations and migration plan."""
        severities = result.all_severities()
        summary = VulnerabilitySummary(
            critical_count=severities.count(Severity.CRITICAL),
            high_count=severities.count(Severity.HIGH),
            medium_count=severities.count(Severity.MEDIUM),
            low_count=severities.count(Severity.LOW),
            action_required_count=sum(1 for s in severities if s in ACTION_REQUIRED_SEVERITIES),
        )

        result.summary = summary
        result.overall_risk_level = highest_severity(severities)
        result.immediate_action_required = summary.action_required_count > 0
        result.strategic_recommendations = self.strategic_recommendations(summary, result.dependency_check)
        result.migration_plan = self.migration_plan(summary)
        return result

    @staticmethod
    def strategic_recommendations(summary: VulnerabilitySummary,
                                  dependency_check: DependencyCheckResult) -> List[str]:
        recommendations = []
        if summary.critical_count:
            recommendations.append(
                f"Remediate {summary.critical_count} critical vulnerabilities before the next release"
            )
        if summary.high_count:
            recommendations.append(
                f"Schedule fixes for {summary.high_count} high severity vulnerabilities in the current cycle"
            )
        if dependency_check.project_info.vulnerable_dependencies:
            recommendations.append("Upgrade vulnerable third-party dependencies to patched versions")
        if not dependency_check.scan_success:
            recommendations.append(
                "Install OWASP Dependency-Check (Maven plugin, CLI or Docker) to scan third-party dependencies"
            )
        if summary.medium_count or summary.low_count:
            recommendations.append("Address medium and low severity findings during regular maintenance")
        recommendations.append("Integrate dependency scanning into the CI/CD pipeline")
        recommendations.append("Re-run this analysis after remediation to verify fixes")
        return recommendations

    @staticmethod
    def migration_plan(summary: VulnerabilitySummary) -> SecurityMigrationPlan:
        """Phases scaled to the severity counts."""
        phases: List[MigrationPhase] = []
        total_weeks = 0

        if summary.critical_count or summary.high_count:
            phases.append(MigrationPhase(
                phase="Immediate Remediation",
                priority=len(phases) + 1,
                estimated_duration="1-2 weeks",
                activities=[
                    "Patch or upgrade components with critical and high severity vulnerabilities",
                    "Apply temporary mitigations where no fix is available",
                    "Verify fixes with targeted security tests",
                ],
            ))
            total_weeks += 2

        if summary.medium_count:
            phases.append(MigrationPhase(
                phase="Medium Severity Remediation",
                priority=len(phases) + 1,
                estimated_duration="2-4 weeks",
                activities=[
                    "Fix medium severity findings in source code",
                    "Upgrade dependencies with known medium severity issues",
                ],
            ))
            total_weeks += 4

        phases.append(MigrationPhase(
            phase="Security Hardening",
            priority=len(phases) + 1,
            estimated_duration="2-3 weeks",
            activities=[
                "Address remaining low severity findings",
                "Enable dependency scanning in CI/CD",
                "Establish a regular dependency update schedule",
            ],
        ))
        total_weeks += 3

        return SecurityMigrationPlan(
            total_estimated_duration=f"{total_weeks} weeks",
            phases=phases,
        )
