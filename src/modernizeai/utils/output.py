"""Report output: timestamped JSON results and Markdown reports."""

import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .console import strip_ansi_colors


def generate_timestamp(now: Optional[datetime] = None) -> str:
    """Filesystem-safe timestamp such as ``2024-05-01_13-45-10``."""
    now = now or datetime.now()
    return now.strftime('%Y-%m-%d_%H-%M-%S')


def sanitize_name(project_path: str) -> str:
    """Base name of the project with everything but letters and digits replaced."""
    base = Path(str(project_path)).resolve().name or 'project'
    return re.sub(r'[^a-zA-Z0-9]', '_', base)


def build_report_paths(analysis_type: str, project_path: str, output_dir: Path,
                       timestamp: Optional[str] = None) -> Tuple[Path, Path]:
    """JSON and Markdown paths sharing one base name."""
    timestamp = timestamp or generate_timestamp()
    base_name = f"{analysis_type}_{sanitize_name(project_path)}_{timestamp}"
    output_dir = Path(output_dir)
    return output_dir / f"{base_name}.json", output_dir / f"{base_name}.md"


def save_analysis_results(analysis_type: str,
                          data: Dict[str, Any],
                          terminal_output: str,
                          project_path: str,
                          output_dir: Optional[Path] = None) -> Tuple[Path, Path]:
    """Write the JSON result and the Markdown report; return both paths."""
    output_dir = Path(output_dir) if output_dir else Path.cwd()
    output_dir.mkdir(parents=True, exist_ok=True)

    json_file, markdown_file = build_report_paths(analysis_type, project_path, output_dir)

    json_file.write_text(json.dumps(data, indent=2, default=str), encoding='utf-8')
    markdown_file.write_text(
        render_markdown_report(analysis_type, data, terminal_output, project_path),
        encoding='utf-8',
    )

    return json_file, markdown_file


def render_markdown_report(analysis_type: str,
                           data: Dict[str, Any],
                           terminal_output: str,
                           project_path: str) -> str:
    """Render the Markdown report. Output depends only on the arguments."""
    title = analysis_type[:1].upper() + analysis_type[1:]
    analysis_date = data.get('timestamp') or data.get('metadata', {}).get('timestamp', 'Unknown')

    sections = [
        f"# {title} Analysis Report",
        "",
        f"**Project:** {project_path}  ",
        f"**Analysis Date:** {analysis_date}  ",
        "**Tool:** ModernizeAI",
        "",
        "---",
        "",
    ]

    renderer = _RENDERERS.get(analysis_type)
    if renderer:
        sections.append(renderer(data))

    sections.extend([
        "",
        "---",
        "",
        "## Raw Terminal Output",
        "",
        "```",
        strip_ansi_colors(terminal_output).rstrip("\n"),
        "```",
        "",
        "---",
        "",
        "## Analysis Data (JSON)",
        "",
        "```json",
        json.dumps(data, indent=2, default=str),
        "```",
        "",
    ])

    return "\n".join(sections)


def _bullets(items: Optional[List[Any]], empty: str = "None") -> str:
    if not items:
        return empty
    return "\n".join(f"- {item}" for item in items)


def _upper(value: Any, default: str = 'Unknown') -> str:
    return str(value).upper() if value else default


def _render_cve(data: Dict[str, Any]) -> str:
    analysis = data.get('analysis') or {}
    summary = analysis.get('summary') or {}
    dependency_check = analysis.get('dependency_check') or {}
    project_info = dependency_check.get('project_info') or {}

    out = [
        "## Summary",
        "",
        f"- **Total Files Analyzed:** {analysis.get('total_files', 0)}",
        f"- **Files with Vulnerabilities:** {analysis.get('vulnerable_files', 0)}",
        f"- **Overall Risk Level:** {analysis.get('overall_risk_level', 'Unknown')}",
        f"- **Immediate Action Required:** {'Yes' if analysis.get('immediate_action_required') else 'No'}",
        f"- **Analysis Date:** {data.get('timestamp', 'Unknown')}",
        "",
        "| Severity | Count |",
        "|----------|-------|",
        f"| Critical | {summary.get('critical_count', 0)} |",
        f"| High | {summary.get('high_count', 0)} |",
        f"| Medium | {summary.get('medium_count', 0)} |",
        f"| Low | {summary.get('low_count', 0)} |",
        "",
        "## Dependency Scan (OWASP Dependency-Check)",
        "",
        f"- **Scan Success:** {'Yes' if dependency_check.get('scan_success') else 'No'}",
        f"- **Dependencies Scanned:** {project_info.get('dependencies', 0)}",
        f"- **Vulnerable Dependencies:** {project_info.get('vulnerable_dependencies', 0)}",
        "",
    ]

    for index, vuln in enumerate(analysis.get('enhanced_vulnerabilities') or [], 1):
        out.append(f"### {index}. {vuln.get('cve_id')} - {vuln.get('affected_artifact')}")
        out.append("")
        out.append(f"**Severity:** {vuln.get('severity')} (CVSS: {vuln.get('cvss_score')})  ")
        out.append(f"**Description:** {vuln.get('description')}")
        llm_analysis = vuln.get('llm_analysis')
        if llm_analysis:
            out.append("")
            out.append(f"- *Risk:* {llm_analysis.get('risk_assessment')}")
            out.append(f"- *Priority:* {llm_analysis.get('remediation_priority')}")
            out.append(f"- *Complexity:* {llm_analysis.get('migration_complexity')}")
        if vuln.get('final_recommendation'):
            out.append("")
            out.append(f"**Recommendation:** {vuln.get('final_recommendation')}")
        out.append("")

    out.append("## Vulnerability Details")
    out.append("")
    file_reports = [r for r in analysis.get('file_reports') or [] if r.get('vulnerabilities')]
    if not file_reports:
        out.append("No vulnerabilities detected.")
        out.append("")
    for index, report in enumerate(file_reports, 1):
        out.append(f"### {index}. {report.get('file_path')}")
        out.append("")
        for vuln_index, vuln in enumerate(report.get('vulnerabilities') or [], 1):
            out.append(f"#### {vuln_index}. {vuln.get('type')} ({vuln.get('severity')} Severity)")
            out.append("")
            out.append(f"**Line:** {vuln.get('line_number')}  ")
            out.append(f"**Description:** {vuln.get('description')}")
            if vuln.get('cve_id'):
                out.append(f"**CVE:** {vuln.get('cve_id')}")
            if vuln.get('recommendation'):
                out.append("")
                out.append(f"**Recommendation:** {vuln.get('recommendation')}")
            out.append("")

    out.append("## Strategic Recommendations")
    out.append("")
    out.append(_bullets(analysis.get('strategic_recommendations')))
    out.append("")

    plan = analysis.get('migration_plan')
    if plan:
        out.append("## Security Migration Plan")
        out.append("")
        out.append(f"**Total Estimated Duration:** {plan.get('total_estimated_duration')}")
        out.append("")
        for phase in plan.get('phases') or []:
            out.append(f"### Phase {phase.get('priority')}: {phase.get('phase')}")
            out.append("")
            out.append(f"**Duration:** {phase.get('estimated_duration')}")
            out.append("")
            out.append(_bullets(phase.get('activities')))
            out.append("")

    out.extend([
        "## Recommendations",
        "",
        "1. **High Severity Issues:** Address immediately before deployment",
        "2. **Medium Severity Issues:** Plan fixes in next development cycle",
        "3. **Low Severity Issues:** Consider addressing during regular maintenance",
        "",
        "## Security Best Practices",
        "",
        "- Implement input validation for all user inputs",
        "- Use parameterized queries to prevent SQL injection",
        "- Avoid logging sensitive information",
        "- Use HTTPS for all external communications",
        "- Implement proper error handling without exposing sensitive details",
    ])
    return "\n".join(out)


_PROVIDER_GUIDANCE = {
    'aws': [
        "### AWS Recommendations",
        "- Use AWS Application Load Balancer for traffic distribution",
        "- Implement AWS CloudWatch for monitoring",
        "- Consider AWS Lambda for serverless functions",
        "- Use AWS RDS for managed databases",
    ],
    'azure': [
        "### Azure Recommendations",
        "- Use Azure Application Gateway for load balancing",
        "- Implement Azure Monitor for observability",
        "- Consider Azure Functions for serverless computing",
        "- Use Azure SQL Database for managed data services",
    ],
    'gcp': [
        "### Google Cloud Recommendations",
        "- Use Google Cloud Load Balancing",
        "- Implement Cloud Monitoring and Logging",
        "- Consider Cloud Functions for event-driven architecture",
        "- Use Cloud SQL for managed databases",
    ],
    'atlas': [
        "### MongoDB Atlas Recommendations",
        "- Use Atlas connection strings with SRV records and TLS",
        "- Enable Atlas monitoring, alerts and the Performance Advisor",
        "- Configure Network Access Lists and scoped database users",
        "- Consider Atlas App Services for serverless functions and triggers",
    ],
}

_GENERIC_GUIDANCE = [
    "### Generic Cloud Recommendations",
    "- Implement container orchestration (Kubernetes)",
    "- Use managed database services",
    "- Implement proper monitoring and logging",
    "- Design for auto-scaling capabilities",
]


def _render_cloud_readiness(data: Dict[str, Any]) -> str:
    summary = data.get('summary') or {}
    overall = data.get('overall_score')
    overall_text = f"{overall:.1f}" if isinstance(overall, (int, float)) else 'N/A'

    out = [
        "## Summary",
        "",
        f"- **Overall Readiness Score:** {overall_text}/10",
        f"- **Target Cloud Provider:** {_upper(data.get('cloud_provider'), 'Generic')}",
        f"- **Total Files Analyzed:** {data.get('total_files', 0)}",
        "",
        "### Readiness Distribution",
        f"- **High Readiness (8-10):** {summary.get('high_readiness', 0)} files",
        f"- **Medium Readiness (5-7):** {summary.get('medium_readiness', 0)} files",
        f"- **Low Readiness (0-4):** {summary.get('low_readiness', 0)} files",
        "",
        "## Detailed Assessment",
        "",
    ]

    assessments = data.get('assessments') or []
    if not assessments:
        out.append("No assessments available.")
        out.append("")
    for index, assessment in enumerate(assessments, 1):
        out.append(f"### {index}. {assessment.get('file_path')}")
        out.append("")
        out.append(f"**Readiness Score:** {float(assessment.get('readiness_score', 0)):.1f}/10")
        out.append("")
        out.append("#### Issues Identified:")
        for issue in assessment.get('issues') or []:
            out.append(f"- **{issue.get('category')}** ({issue.get('severity')}): {issue.get('description')}")
            if issue.get('recommendation'):
                out.append(f"  - *Recommendation:* {issue.get('recommendation')}")
        if assessment.get('strengths'):
            out.append("")
            out.append("#### Strengths:")
            out.append(_bullets(assessment.get('strengths')))
        out.append("")

    out.extend([
        "## Cloud Migration Recommendations",
        "",
        "### Immediate Actions (High Priority)",
        "- Address low readiness files with critical cloud compatibility issues",
        "- Implement stateless design patterns",
        "- Externalize configuration management",
        "",
        "### Short-term Improvements (Medium Priority)",
        "- Implement health checks and monitoring",
        "- Add distributed tracing capabilities",
        "- Optimize for horizontal scaling",
        "",
        "### Long-term Enhancements (Low Priority)",
        "- Adopt cloud-native patterns (circuit breakers, service mesh)",
        "- Implement advanced observability",
        "- Consider serverless opportunities",
        "",
        "## Cloud Provider Specific Guidance",
        "",
    ])
    out.extend(_PROVIDER_GUIDANCE.get(data.get('cloud_provider'), _GENERIC_GUIDANCE))
    return "\n".join(out)


def _render_architect(data: Dict[str, Any]) -> str:
    metadata = data.get('metadata') or {}
    analysis = data.get('architecture_analysis') or {}
    dependency_changes = analysis.get('dependency_changes') or {}

    out = [
        "## Executive Summary",
        "",
        f"- **Source Framework:** {_upper(metadata.get('source_framework'))}",
        f"- **Target Framework:** {_upper(metadata.get('target_framework'))}",
        f"- **Target Java Version:** {metadata.get('target_java_version', 'Unknown')}",
        f"- **Complexity Score:** {analysis.get('complexity_score', 'N/A')}/10",
        f"- **Estimated Effort:** {analysis.get('estimated_effort', 'N/A')}",
        "",
        "## High-Level Migration Steps",
        "",
    ]

    steps = analysis.get('high_level_steps') or []
    if not steps:
        out.append("No migration steps available.")
        out.append("")
    for index, step in enumerate(steps, 1):
        out.append(f"### {index}. {step.get('title')}")
        out.append("")
        out.append(step.get('description') or "")
        out.append("")
        out.append(f"**Effort:** {step.get('effort') or 'Not specified'}")
        out.append("")

    out.append("## Framework-Specific Changes")
    out.append("")
    changes = analysis.get('framework_changes') or []
    if not changes:
        out.append("No framework changes available.")
        out.append("")
    for index, change in enumerate(changes, 1):
        out.append(f"### {index}. {change.get('component')}: {change.get('action')}")
        out.append("")
        out.append(change.get('description') or "")
        out.append("")
        out.append(f"- **Before:** `{change.get('before') or 'N/A'}`")
        out.append(f"- **After:** `{change.get('after') or 'N/A'}`")
        out.append("")

    out.extend([
        "## Dependency Changes",
        "",
        "### Dependencies to Remove",
        _bullets(dependency_changes.get('remove')),
        "",
        "### Dependencies to Add",
        _bullets(dependency_changes.get('add')),
        "",
        "### Dependencies to Update",
        _bullets(dependency_changes.get('update')),
        "",
        "## Code Transformation Examples",
        "",
    ])

    examples = analysis.get('code_examples') or []
    if not examples:
        out.append("No code examples available.")
        out.append("")
    for index, example in enumerate(examples, 1):
        out.extend([
            f"### {index}. {example.get('description')}",
            "",
            "**Before:**",
            "```java",
            example.get('before') or "",
            "```",
            "",
            "**After:**",
            "```java",
            example.get('after') or "",
            "```",
            "",
        ])

    risk = analysis.get('risk_assessment') or {}
    out.extend([
        "## Risk Assessment",
        "",
        f"**Level:** {risk.get('level', 'Unknown')}",
        "",
        "### Risks",
        _bullets(risk.get('factors')),
        "",
        "### Mitigations",
        _bullets(risk.get('mitigations')),
        "",
        "## Recommendations",
        "",
        _bullets(analysis.get('recommendations')),
    ])

    migration = data.get('migration_analysis')
    if migration:
        out.extend([
            "",
            "## Detailed Migration Plan",
            "",
            f"- **Detected Framework:** {migration.get('current_framework', 'Unknown')}",
            f"- **Complexity Score:** {migration.get('complexity_score', 'N/A')}/10",
            f"- **Estimated Effort:** {migration.get('estimated_effort', 'N/A')}",
            "",
            "| # | Step | Priority | Category | Hours |",
            "|---|------|----------|----------|-------|",
        ])
        for index, step in enumerate(migration.get('migration_steps') or [], 1):
            hours = step.get('estimated_hours')
            out.append(
                f"| {index} | {step.get('title')} | {step.get('priority')} | "
                f"{step.get('category')} | {hours if hours is not None else '-'} |"
            )
        if migration.get('configuration_changes'):
            out.extend(["", "### Configuration Changes", _bullets(migration.get('configuration_changes'))])

    return "\n".join(out)


_RENDERERS = {
    'cve': _render_cve,
    'cloud-readiness': _render_cloud_readiness,
    'architect': _render_architect,
}
