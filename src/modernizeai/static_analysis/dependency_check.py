"""OWASP Dependency-Check integration."""

import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Any
from xml.etree.ElementTree import Element

from defusedxml import ElementTree
from defusedxml.common import DefusedXmlException

from ..core.models import (
    DependencyCheckResult, DependencyProjectInfo, DependencyVulnerability, Severity,
    severity_from_score,
)
from .base import BaseExternalTool, ExternalToolError


REPORT_XML = "dependency-check-report.xml"
REPORT_HTML = "dependency-check-report.html"


def _local_name(tag: str) -> str:
    # Reports carry a versioned XML namespace; match on the local part only
    return tag.rsplit('}', 1)[-1]


def _child(element: Optional[Element], name: str) -> Optional[Element]:
    if element is None:
        return None
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


def _children(element: Optional[Element], name: str) -> List[Element]:
    if element is None:
        return []
    return [child for child in element if _local_name(child.tag) == name]


def _text(element: Optional[Element], name: str, default: str = "") -> str:
    child = _child(element, name)
    if child is None or child.text is None:
        return default
    return child.text.strip()


def _float(value: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class DependencyCheckAnalyzer(BaseExternalTool):
    """Runs OWASP Dependency-Check through Maven, its CLI or Docker."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.nvd_api_key: Optional[str] = self.config.get('nvd_api_key')
        self.timeout: int = self.config.get('timeout_seconds', 300)
        self.docker_image: str = self.config.get('docker_image', "owasp/dependency-check:latest")

    def get_tool_name(self) -> str:
        return "dependency-check"

    def is_available(self) -> bool:
        return any(self.check_availability().values())

    def check_availability(self) -> Dict[str, bool]:
        """Which of the three ways of running the scanner work here."""
        return {
            'maven': self.command_available(["mvn", "--version"]),
            'cli': self.command_available(["dependency-check.sh", "--version"]),
            'docker': self.command_available(["docker", "--version"]),
        }

    def run(self, project_path: Path) -> DependencyCheckResult:
        """Scan the project's dependencies. Never raises."""
        project_path = Path(project_path).resolve()

        if not self.nvd_api_key:
            self.logger.warning("NVD API key not configured; the NVD update will be slow or rate limited")

        try:
            if (project_path / "pom.xml").exists():
                return self._run_maven(project_path)
            # Gradle projects go through the standalone CLI as well
            return self._run_cli(project_path)
        except (ExternalToolError, OSError) as e:
            self.logger.warning(f"Dependency check failed: {e}")
            return DependencyCheckResult.failed()

    def _run_maven(self, project_path: Path) -> DependencyCheckResult:
        report_dir = project_path / "target" / "dependency-check-report"
        report_dir.mkdir(parents=True, exist_ok=True)

        cmd = [
            "mvn", "org.owasp:dependency-check-maven:check",
            "-Dformat=ALL",
            f"-DreportOutputDirectory={report_dir}",
            "-DfailBuildOnCVSS=0",
            "-DskipTestScope=false",
            "-DskipProvidedScope=false",
            "-DskipRuntimeScope=false",
        ]
        if self.nvd_api_key:
            cmd.insert(3, f"-DnvdApiKey={self.nvd_api_key}")

        try:
            self.run_command(cmd, timeout=self.timeout, cwd=project_path, secrets=[self.nvd_api_key])
        except ExternalToolError as e:
            # The plugin often writes a report even when the build fails
            self.logger.warning(f"Maven dependency check reported problems: {e}")

        for location in (report_dir, project_path / "target"):
            try:
                return self.parse_report(location)
            except (ExternalToolError, OSError) as e:
                self.logger.debug(f"No usable report in {location}: {e}")

        raise ExternalToolError(
            f"No dependency-check report found in {report_dir} or {project_path / 'target'}"
        )

    def _run_cli(self, project_path: Path) -> DependencyCheckResult:
        report_dir = project_path / "dependency-check-report"
        report_dir.mkdir(parents=True, exist_ok=True)

        cmd = [
            "dependency-check.sh",
            "--scan", str(project_path),
            "--format", "ALL",
            "--out", str(report_dir),
            "--enableRetired",
            "--enableExperimental",
        ]
        if self.nvd_api_key:
            cmd.extend(["--nvdApiKey", self.nvd_api_key])

        try:
            self.run_command(cmd, timeout=self.timeout, secrets=[self.nvd_api_key])
            return self.parse_report(report_dir)
        except ExternalToolError as e:
            self.logger.warning(f"CLI dependency check failed, trying Docker: {e}")
            return self._run_docker(project_path, report_dir)

    def _run_docker(self, project_path: Path, report_dir: Path) -> DependencyCheckResult:
        if shutil.which("docker") is None:
            raise ExternalToolError("Docker is not available")

        cmd = [
            "docker", "run", "--rm",
            "-v", f"{project_path}:/src",
            "-v", f"{report_dir}:/report",
            self.docker_image,
            "--scan", "/src",
            "--format", "ALL",
            "--out", "/report",
        ]
        if self.nvd_api_key:
            cmd.extend(["--nvdApiKey", self.nvd_api_key])

        self.run_command(cmd, timeout=self.timeout, secrets=[self.nvd_api_key])
        return self.parse_report(report_dir)

    def parse_report(self, report_dir: Path) -> DependencyCheckResult:
        """Parse ``dependency-check-report.xml`` from ``report_dir``."""
        xml_report = Path(report_dir) / REPORT_XML
        if not xml_report.exists():
            raise ExternalToolError(f"Dependency-check report not found at {xml_report}")

        try:
            root = ElementTree.parse(str(xml_report)).getroot()
        except (DefusedXmlException, ElementTree.ParseError) as e:
            raise ExternalToolError(f"Invalid dependency-check report {xml_report}: {e}")

        if _local_name(root.tag) != "analysis":
            raise ExternalToolError("No analysis section found in dependency-check report")

        report_date = _text(_child(root, "projectInfo"), "reportDate") or datetime.now(timezone.utc).isoformat()
        dependencies = _children(_child(root, "dependencies"), "dependency")

        vulnerabilities: List[DependencyVulnerability] = []
        vulnerable_dependencies = 0

        for dependency in dependencies:
            file_name = _text(dependency, "fileName", "unknown")
            dep_vulns = _children(_child(dependency, "vulnerabilities"), "vulnerability")
            if not dep_vulns:
                continue

            vulnerable_dependencies += 1
            for vuln in dep_vulns:
                vulnerabilities.append(self._parse_vulnerability(vuln, file_name))

        self.logger.info(
            f"Dependency check complete: {len(vulnerabilities)} vulnerabilities "
            f"in {len(dependencies)} dependencies"
        )

        return DependencyCheckResult(
            project_info=DependencyProjectInfo(
                report_date=report_date,
                scan_duration="N/A",
                dependencies=len(dependencies),
                vulnerable_dependencies=vulnerable_dependencies,
            ),
            vulnerabilities=vulnerabilities,
            scan_success=True,
            report_path=str(Path(report_dir) / REPORT_HTML),
            xml_report_path=str(xml_report),
        )

    def _parse_vulnerability(self, vuln: Element, file_name: str) -> DependencyVulnerability:
        name = _text(vuln, "name", "Unknown")

        cvss_score = _float(_text(_child(vuln, "cvssV3"), "baseScore"))
        if not cvss_score:
            cvss_score = _float(_text(_child(vuln, "cvssV2"), "score"))

        references = [
            _text(reference, "url")
            for reference in _children(_child(vuln, "references"), "reference")
            if _text(reference, "url")
        ]

        return DependencyVulnerability(
            name=name,
            cve_id=name,
            severity=self._resolve_severity(_text(vuln, "severity"), cvss_score),
            cvss_score=cvss_score,
            description=_text(vuln, "description", "No description available"),
            references=references,
            affected_artifact=file_name,
            file_name=file_name,
            solution=self._generate_solution(vuln),
        )

    def _resolve_severity(self, raw_severity: Optional[str], cvss_score: float) -> Severity:
        """Reported severity when recognised, otherwise derived from the CVSS score."""
        known = raw_severity and raw_severity.strip().lower() in ('critical', 'high', 'medium', 'moderate', 'low')
        if known:
            return Severity.normalize(raw_severity)
        if cvss_score > 0:
            return severity_from_score(cvss_score)
        if not raw_severity:
            return Severity.LOW
        return self._map_severity(raw_severity)

    def _map_severity(self, raw_severity: str) -> Severity:
        severity = Severity.normalize(raw_severity, default=Severity.MEDIUM)
        if raw_severity.strip().lower() not in ('critical', 'high', 'medium', 'low'):
            self.logger.warning(f"Unknown severity: {raw_severity}, defaulting to {severity.value}")
        return severity

    @staticmethod
    def _generate_solution(vuln: Element) -> str:
        solutions = []
        if _child(vuln, "vulnerableSoftware") is not None or _child(vuln, "software") is not None:
            solutions.append("Update to a patched version")
        solutions.append("Review security advisories for this dependency")
        solutions.append("Consider using alternative libraries if no fix is available")
        return ". ".join(solutions)
