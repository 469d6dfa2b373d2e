"""Tests for the vulnerability scan."""

import json
import pytest
from unittest.mock import Mock, patch

from modernizeai.analysis.cve_analyzer import CveAnalyzer, merge_findings, highest_severity
from modernizeai.core.models import (
    DependencyCheckResult, DependencyProjectInfo, DependencyVulnerability, FileVulnerabilityReport,
    FindingSource, Severity, VulnerabilityFinding, VulnerabilitySummary,
)
from modernizeai.llm import LLMError


def _vuln(cve_id, severity, score, artifact="lib.jar"):
    return DependencyVulnerability(
        name=cve_id,
        cve_id=cve_id,
        severity=severity,
        cvss_score=score,
        description=f"{cve_id} description",
        affected_artifact=artifact,
        file_name=artifact,
        solution="Update to a patched version",
    )


class TestMergeFindings:
    """Test combining heuristic and LLM findings."""

    def test_duplicates_on_same_line_dropped(self):
        heuristic = [VulnerabilityFinding(type="SQL Injection", severity="High", line_number=3, description="h")]
        llm = [
            VulnerabilityFinding(type="sql injection", severity="Critical", line_number=3, description="l",
                                 source=FindingSource.LLM),
            VulnerabilityFinding(type="XSS", severity="Medium", line_number=3, description="l",
                                 source=FindingSource.LLM),
        ]

        merged = merge_findings(heuristic, llm)

        assert [f.type for f in merged] == ["SQL Injection", "XSS"]
        assert merged[0].source == FindingSource.HEURISTIC

    def test_highest_severity(self):
        assert highest_severity([]) == Severity.LOW
        assert highest_severity([Severity.MEDIUM, Severity.CRITICAL, Severity.LOW]) == Severity.CRITICAL


class TestCveAnalyzer:
    """Test the CVE analyzer."""

    def test_analyze_file_merges_llm_findings(self, mock_llm_client):
        mock_llm_client.simple_completion.return_value = json.dumps({
            "vulnerabilities": [
                {"type": "Hardcoded Secret", "severity": "HIGH", "lineNumber": 1,
                 "description": "dup", "cveId": None, "recommendation": "r"},
                {"type": "Path Traversal", "severity": "medium", "lineNumber": "2",
                 "description": "File name from request", "cveId": "CVE-2020-1234"},
                "not a dict",
            ]
        })
        analyzer = CveAnalyzer(mock_llm_client)

        report = analyzer.analyze_file("app.py", 'password = "hunter2hunter2"\nopen(request.args["f"])\n')

        types = [f.type for f in report.vulnerabilities]
        assert types == ["Hardcoded Secret", "Path Traversal"]
        traversal = report.vulnerabilities[1]
        assert traversal.source == FindingSource.LLM
        assert traversal.line_number == 2
        assert traversal.severity == Severity.MEDIUM
        assert traversal.cve_id == "CVE-2020-1234"

    def test_llm_failure_keeps_heuristics(self, mock_llm_client):
        mock_llm_client.simple_completion.side_effect = LLMError("down")
        analyzer = CveAnalyzer(mock_llm_client)

        report = analyzer.analyze_file("app.py", 'os.system(cmd)\n')

        assert [f.type for f in report.vulnerabilities] == ["Command Injection"]

    def test_unparseable_llm_response(self, mock_llm_client):
        mock_llm_client.simple_completion.return_value = "I could not analyze this file."
        analyzer = CveAnalyzer(mock_llm_client)

        report = analyzer.analyze_file("app.py", 'x = 1\n')
        assert report.vulnerabilities == []

    def test_malformed_finding_does_not_stop_batch(self, mock_llm_client, temp_dir):
        first = temp_dir / "a.py"
        first.write_text("x = 1\n")
        second = temp_dir / "b.py"
        second.write_text("y = 2\n")
        mock_llm_client.simple_completion.side_effect = [
            json.dumps({"vulnerabilities": [
                {"type": "XSS", "severity": "High", "lineNumber": 1, "description": "d",
                 "recommendation": ["escape", "sanitize"]},
                {"type": "Weak Hash", "severity": "Low", "lineNumber": 1, "description": "md5",
                 "cveId": 2020},
            ]}),
            json.dumps({"vulnerabilities": [
                {"type": "Path Traversal", "severity": "Medium", "lineNumber": 1, "description": "p"},
            ]}),
        ]

        reports = CveAnalyzer(mock_llm_client).analyze_files([first, second])

        assert [r.file_path for r in reports] == [str(first), str(second)]
        assert [f.type for f in reports[0].vulnerabilities] == ["Weak Hash"]
        assert reports[0].vulnerabilities[0].cve_id == "2020"
        assert [f.type for f in reports[1].vulnerabilities] == ["Path Traversal"]

    def test_failing_file_is_skipped(self, mock_llm_client, temp_dir):
        first = temp_dir / "a.py"
        first.write_text("x = 1\n")
        second = temp_dir / "b.py"
        second.write_text("y = 2\n")
        analyzer = CveAnalyzer(mock_llm_client)

        with patch.object(analyzer, 'analyze_file',
                          side_effect=[RuntimeError("boom"), FileVulnerabilityReport(file_path=str(second))]):
            reports = analyzer.analyze_files([first, second])

        assert [r.file_path for r in reports] == [str(second)]

    def test_max_llm_files(self, mock_llm_client, temp_dir):
        files = []
        for index in range(3):
            path = temp_dir / f"f{index}.py"
            path.write_text("x = 1\n")
            files.append(path)

        analyzer = CveAnalyzer(mock_llm_client, max_llm_files=2)
        reports = analyzer.analyze_files(files)

        assert len(reports) == 3
        assert mock_llm_client.simple_completion.call_count == 2

    def test_enhance_vulnerabilities(self, mock_llm_client):
        mock_llm_client.simple_completion.return_value = json.dumps({
            "riskAssessment": "Remote code execution reachable from logging",
            "remediationPriority": "Immediate",
            "migrationComplexity": "Low",
            "recommendation": "Upgrade log4j-core to 2.17.1",
        })
        analyzer = CveAnalyzer(mock_llm_client, max_llm_enhancements=1)
        vulnerabilities = [
            _vuln("CVE-LOW", Severity.LOW, 2.0),
            _vuln("CVE-CRIT", Severity.CRITICAL, 10.0, "log4j-core.jar"),
        ]

        enhanced = analyzer.enhance_vulnerabilities(vulnerabilities)

        assert [v.cve_id for v in enhanced] == ["CVE-CRIT", "CVE-LOW"]
        assert mock_llm_client.simple_completion.call_count == 1

        critical, low = enhanced
        assert critical.action_required is True
        assert critical.llm_analysis.remediation_priority == "Immediate"
        assert critical.final_recommendation == "Upgrade log4j-core to 2.17.1"

        assert low.action_required is False
        assert low.llm_analysis.remediation_priority == "Low"
        assert low.final_recommendation == "Update to a patched version"

    def test_enhancement_failure_uses_fallback(self, mock_llm_client):
        mock_llm_client.simple_completion.side_effect = LLMError("down")
        analyzer = CveAnalyzer(mock_llm_client)

        enhanced = analyzer.enhance_vulnerabilities([_vuln("CVE-1", Severity.HIGH, 8.1, "a.jar")])

        assert enhanced[0].llm_analysis.remediation_priority == "High"
        assert "CVE-1" in enhanced[0].final_recommendation

    def test_analyze_project(self, mock_llm_client, sample_java_project):
        checker = Mock()
        checker.run.return_value = DependencyCheckResult(
            project_info=DependencyProjectInfo(dependencies=4, vulnerable_dependencies=1),
            vulnerabilities=[_vuln("CVE-2021-44228", Severity.CRITICAL, 10.0)],
            scan_success=True,
        )
        files = sorted(sample_java_project.rglob("*.java"))
        analyzer = CveAnalyzer(mock_llm_client, dependency_checker=checker)

        result = analyzer.analyze_project(sample_java_project, files)

        checker.run.assert_called_once_with(sample_java_project)
        assert result.total_files == 1
        assert result.vulnerable_files == 1
        assert result.overall_risk_level == Severity.CRITICAL
        assert result.immediate_action_required is True
        assert result.summary.critical_count == 1
        assert result.summary.high_count >= 2
        assert result.migration_plan.phases[0].phase == "Immediate Remediation"
        assert any("third-party" in r for r in result.strategic_recommendations)

    def test_analyze_project_without_enhanced_mode(self, mock_llm_client, temp_dir):
        checker = Mock()
        analyzer = CveAnalyzer(mock_llm_client, dependency_checker=checker)

        result = analyzer.analyze_project(temp_dir, [], enhanced_mode=False)

        checker.run.assert_not_called()
        assert result.dependency_check.scan_success is False
        assert result.overall_risk_level == Severity.LOW
        assert result.immediate_action_required is False
        assert any("Install OWASP Dependency-Check" in r for r in result.strategic_recommendations)


class TestMigrationPlan:
    """Test the security migration plan."""

    def test_clean_project_gets_hardening_only(self):
        plan = CveAnalyzer.migration_plan(VulnerabilitySummary())

        assert [p.phase for p in plan.phases] == ["Security Hardening"]
        assert plan.phases[0].priority == 1
        assert plan.total_estimated_duration == "3 weeks"

    def test_all_phases(self):
        plan = CveAnalyzer.migration_plan(VulnerabilitySummary(high_count=1, medium_count=2))

        assert [p.phase for p in plan.phases] == [
            "Immediate Remediation", "Medium Severity Remediation", "Security Hardening",
        ]
        assert [p.priority for p in plan.phases] == [1, 2, 3]
        assert plan.total_estimated_duration == "9 weeks"
