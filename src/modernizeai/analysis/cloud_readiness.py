"""Cloud deployment readiness scoring."""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..core.models import (
    CloudAssessment, CloudProvider, CloudReadinessIssue, ReadinessSummary, Severity,
)
from ..llm import LLMClient, LLMError, extract_json_object
from ..llm.prompts import build_cloud_readiness_prompt


logger = logging.getLogger(__name__)


BASE_SCORE = 7.0
MAX_STRENGTH_BONUS = 3.0
ISSUE_PENALTIES = {
    Severity.HIGH: 2.0,
    Severity.MEDIUM: 1.0,
    Severity.LOW: 0.5,
}


def _search(pattern: str, content: str, flags: int = 0) -> bool:
    return re.search(pattern, content, flags) is not None


def _issue(category: str, severity: Severity, description: str, recommendation: str) -> CloudReadinessIssue:
    return CloudReadinessIssue(
        category=category,
        severity=severity,
        description=description,
        recommendation=recommendation,
    )


def check_configuration(content: str, issues: List[CloudReadinessIssue], strengths: List[str]) -> None:
    if _search(r'process\.env\.|os\.environ|os\.getenv|System\.getenv|os\.Getenv', content):
        strengths.append('Uses environment variables for configuration')
    elif _search(r'config\s*=\s*\{[\s\S]*\}', content):
        issues.append(_issue(
            'Configuration', Severity.MEDIUM,
            'Hardcoded configuration detected',
            'Use environment variables or external configuration files',
        ))

    if _search(r'''(?:password|secret|key|token)\s*[:=]\s*["'`][^"'`\s]+["'`]''', content, re.IGNORECASE):
        issues.append(_issue(
            'Security', Severity.HIGH,
            'Hardcoded secrets detected',
            'Use environment variables or secret management services',
        ))


def check_logging(content: str, issues: List[CloudReadinessIssue], strengths: List[str]) -> None:
    if _search(r'console\.log\(.*JSON\.stringify|logger\.(info|error|warn|warning|debug)', content):
        strengths.append('Uses structured logging patterns')
    elif _search(r'console\.log|print\(|System\.out\.print', content):
        issues.append(_issue(
            'Observability', Severity.MEDIUM,
            'Basic console logging detected',
            'Implement structured logging with log levels and JSON format',
        ))

    if _search(r'metrics|prometheus|datadog|newrelic|micrometer', content, re.IGNORECASE):
        strengths.append('Includes monitoring/metrics integration')


def check_security(content: str, issues: List[CloudReadinessIssue], strengths: List[str]) -> None:
    if 'https://' in content:
        strengths.append('Uses HTTPS for external communications')

    if 'http://' in content and not _search(r'localhost|127\.0\.0\.1', content):
        issues.append(_issue(
            'Security', Severity.MEDIUM,
            'HTTP protocol used for external communications',
            'Use HTTPS for all external API calls',
        ))

    if _search(r'validation|validate|sanitize', content, re.IGNORECASE):
        strengths.append('Includes input validation patterns')


def check_scalability(content: str, issues: List[CloudReadinessIssue], strengths: List[str]) -> None:
    if _search(r'session|state', content, re.IGNORECASE) and not _search(r'stateless|jwt', content, re.IGNORECASE):
        issues.append(_issue(
            'Scalability', Severity.MEDIUM,
            'Potential stateful session management',
            'Use stateless authentication (JWT) and external session storage',
        ))

    if _search(r'cache|redis|memcached', content, re.IGNORECASE):
        strengths.append('Includes caching mechanisms')

    if _search(r'async|await|Promise|CompletableFuture', content):
        strengths.append('Uses asynchronous programming patterns')


def check_container(content: str, issues: List[CloudReadinessIssue], strengths: List[str]) -> None:
    if _search(r'/health|/status|/ping|actuator', content):
        strengths.append('Includes health check endpoints')

    if _search(r'SIGTERM|SIGINT|graceful.*shutdown|@PreDestroy', content, re.IGNORECASE):
        strengths.append('Handles graceful shutdown signals')

    if _search(r'\bfs\.|\bfile\.|FileSystem|FileOutputStream|FileWriter', content):
        issues.append(_issue(
            'Container', Severity.LOW,
            'File system operations detected',
            'Use external storage services for persistent data',
        ))


def check_database(content: str, issues: List[CloudReadinessIssue], strengths: List[str]) -> None:
    if _search(r'pool|connection.*pool', content, re.IGNORECASE):
        strengths.append('Uses database connection pooling')

    if _search(r'\brds\b|cosmos|clouddb|firestore|mongodb\+srv|atlas', content, re.IGNORECASE):
        strengths.append('Uses cloud-managed database services')

    if _search(r'migration|migrate|flyway|liquibase', content, re.IGNORECASE):
        strengths.append('Includes database migration support')


STATIC_CHECKS = [
    check_configuration,
    check_logging,
    check_security,
    check_scalability,
    check_container,
    check_database,
]


def calculate_static_score(issues: List[CloudReadinessIssue], strengths: List[str]) -> float:
    """Start at 7, subtract per issue severity, add up to 3 for strengths, clamp to 0-10."""
    score = BASE_SCORE
    for issue in issues:
        score -= ISSUE_PENALTIES.get(issue.severity, 0.0)
    score += min(len(strengths) * 0.5, MAX_STRENGTH_BONUS)
    return max(0.0, min(10.0, score))


def generate_recommendations(issues: List[CloudReadinessIssue], cloud_provider: str) -> List[str]:
    """Provider-specific advice for each issue category present."""
    categories = {issue.category for issue in issues}
    atlas = cloud_provider == CloudProvider.ATLAS.value
    recommendations: List[str] = []

    if 'Configuration' in categories:
        if atlas:
            recommendations.append('Use MongoDB Atlas App Services for configuration and secrets management')
        else:
            recommendations.append(
                f'Use {cloud_provider.upper()} configuration services (Parameter Store, Key Vault, etc.)'
            )

    if 'Security' in categories:
        if atlas:
            recommendations.append(
                'Implement MongoDB Atlas security best practices including Network Access Lists and Database Users'
            )
        else:
            recommendations.append('Implement cloud security best practices and use managed identity services')

    if 'Observability' in categories:
        if atlas:
            recommendations.append('Integrate with MongoDB Atlas monitoring, alerts, and performance advisor')
        else:
            recommendations.append('Integrate with cloud monitoring and logging services')

    if 'Scalability' in categories:
        if atlas:
            recommendations.append('Design for MongoDB Atlas auto-scaling and use Atlas Data Lake for analytics')
        else:
            recommendations.append('Design for horizontal scaling and use managed services')

    return recommendations


def _unique(items: List[Any]) -> List[Any]:
    seen = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _llm_score(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 5.0
    return max(0.0, min(10.0, score))


class CloudReadinessAnalyzer:
    """Scores files for cloud deployment with static checks and an optional LLM."""

    def __init__(self, llm_client: Optional[LLMClient] = None,
                 cloud_provider: str = CloudProvider.GENERIC.value):
        self.llm_client = llm_client
        self.cloud_provider = CloudProvider(cloud_provider).value

    def assess_file(self, file_path: str, content: str) -> CloudAssessment:
        llm_assessment = None
        if self.llm_client is not None:
            llm_assessment = self._llm_assessment(file_path, content)

        static_assessment = self.static_assessment(content)
        return self.combine_assessments(file_path, static_assessment, llm_assessment)

    def static_assessment(self, content: str) -> Dict[str, Any]:
        issues: List[CloudReadinessIssue] = []
        strengths: List[str] = []

        for check in STATIC_CHECKS:
            check(content, issues, strengths)

        return {
            'readiness_score': calculate_static_score(issues, strengths),
            'issues': issues,
            'strengths': strengths,
            'recommendations': generate_recommendations(issues, self.cloud_provider),
        }

    def _llm_assessment(self, file_path: str, content: str) -> Optional[Dict[str, Any]]:
        prompt = build_cloud_readiness_prompt(file_path, content, self.cloud_provider)
        try:
            response = self.llm_client.simple_completion(prompt)
        except LLMError as e:
            logger.warning(f"LLM assessment failed for {file_path}, falling back to static analysis: {e}")
            return None
        return extract_json_object(response)

    def combine_assessments(self, file_path: str, static_assessment: Dict[str, Any],
                            llm_assessment: Optional[Dict[str, Any]]) -> CloudAssessment:
        score = static_assessment['readiness_score']
        issues = list(static_assessment['issues'])
        strengths = list(static_assessment['strengths'])
        recommendations = list(static_assessment['recommendations'])

        if llm_assessment:
            score = (score + _llm_score(llm_assessment.get('readinessScore'))) / 2

            known = {issue.description for issue in issues}
            for raw_issue in _as_list(llm_assessment.get('issues')):
                if not isinstance(raw_issue, dict) or not raw_issue.get('description'):
                    continue
                description = str(raw_issue['description'])
                if description in known:
                    continue
                try:
                    issue = CloudReadinessIssue(
                        category=str(raw_issue.get('category') or 'General'),
                        severity=raw_issue.get('severity') or 'Medium',
                        description=description,
                        recommendation=raw_issue.get('recommendation'),
                    )
                except (ValidationError, TypeError) as e:
                    logger.debug(f"Dropping malformed LLM issue for {file_path}: {e}")
                    continue
                known.add(description)
                issues.append(issue)

            strengths = _unique(strengths + [str(s) for s in _as_list(llm_assessment.get('strengths'))])
            recommendations = _unique(
                recommendations + [str(r) for r in _as_list(llm_assessment.get('recommendations'))]
            )

        return CloudAssessment(
            file_path=str(file_path),
            readiness_score=round(score, 1),
            issues=issues,
            strengths=strengths,
            recommendations=recommendations,
            cloud_provider=self.cloud_provider,
            assessment_timestamp=datetime.now(timezone.utc).isoformat(),
        )

    @staticmethod
    def calculate_overall_readiness(assessments: List[CloudAssessment]) -> float:
        """Mean readiness score; 0 when nothing was assessed."""
        if not assessments:
            return 0.0
        return sum(a.readiness_score for a in assessments) / len(assessments)

    @staticmethod
    def summarize(assessments: List[CloudAssessment]) -> ReadinessSummary:
        """Bucket files into high (>= 8), medium (5 to < 8) and low (< 5) readiness."""
        summary = ReadinessSummary()
        for assessment in assessments:
            if assessment.readiness_score >= 8:
                summary.high_readiness += 1
            elif assessment.readiness_score >= 5:
                summary.medium_readiness += 1
            else:
                summary.low_readiness += 1
        return summary
