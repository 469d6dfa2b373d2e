"""Tests for cloud readiness scoring."""

import json
import pytest

from modernizeai.analysis.cloud_readiness import (
    CloudReadinessAnalyzer, calculate_static_score, generate_recommendations,
)
from modernizeai.core.models import CloudAssessment, CloudReadinessIssue, Severity
from modernizeai.llm import LLMError


LEGACY_JAVA = '''public class Legacy {
    private String password = "abc123";
    public void run(HttpSession session) throws Exception {
        System.out.println("calling http://api.example.com/data");
        new FileWriter("/var/data/out.txt").write("x");
    }
}
'''


class TestStaticScoring:
    """Test the heuristic score."""

    def test_score_formula(self):
        issues = [
            CloudReadinessIssue(severity="High", description="a"),
            CloudReadinessIssue(severity="Medium", description="b"),
            CloudReadinessIssue(severity="Low", description="c"),
        ]
        assert calculate_static_score(issues, ["s1", "s2"]) == 7 - 2 - 1 - 0.5 + 1

    def test_score_is_clamped(self):
        issues = [CloudReadinessIssue(severity="High", description=str(i)) for i in range(10)]
        assert calculate_static_score(issues, []) == 0.0
        assert calculate_static_score([], ["s"] * 20) == 10.0

    def test_cloud_ready_file(self, cloud_ready_file):
        analyzer = CloudReadinessAnalyzer()
        assessment = analyzer.static_assessment(cloud_ready_file.read_text())

        assert assessment['issues'] == []
        assert assessment['readiness_score'] == 10.0
        assert 'Uses environment variables for configuration' in assessment['strengths']
        assert 'Includes health check endpoints' in assessment['strengths']
        assert 'Handles graceful shutdown signals' in assessment['strengths']

    def test_legacy_file(self):
        analyzer = CloudReadinessAnalyzer()
        assessment = analyzer.static_assessment(LEGACY_JAVA)

        descriptions = {issue.description for issue in assessment['issues']}
        assert 'Hardcoded secrets detected' in descriptions
        assert 'Basic console logging detected' in descriptions
        assert 'HTTP protocol used for external communications' in descriptions
        assert 'Potential stateful session management' in descriptions
        assert 'File system operations detected' in descriptions
        assert assessment['readiness_score'] == 1.5

    def test_recommendations_per_provider(self):
        issues = [
            CloudReadinessIssue(category="Configuration", description="a"),
            CloudReadinessIssue(category="Security", description="b"),
        ]

        aws = generate_recommendations(issues, "aws")
        assert aws[0] == 'Use AWS configuration services (Parameter Store, Key Vault, etc.)'

        atlas = generate_recommendations(issues, "atlas")
        assert all('MongoDB Atlas' in r for r in atlas)

        assert generate_recommendations([], "gcp") == []


class TestCloudReadinessAnalyzer:
    """Test combining static and LLM assessments."""

    def test_without_llm(self, cloud_ready_file):
        analyzer = CloudReadinessAnalyzer(cloud_provider="aws")
        assessment = analyzer.assess_file(str(cloud_ready_file), cloud_ready_file.read_text())

        assert assessment.readiness_score == 10.0
        assert assessment.cloud_provider.value == "aws"
        assert assessment.file_path == str(cloud_ready_file)

    def test_llm_scores_are_averaged(self, mock_llm_client):
        mock_llm_client.simple_completion.return_value = json.dumps({
            "readinessScore": 6,
            "issues": [
                {"category": "Security", "severity": "High", "description": "Hardcoded secrets detected",
                 "recommendation": "dup"},
                {"category": "Scalability", "severity": "critical", "description": "Singleton holds state",
                 "recommendation": "Move state to Redis"},
                {"category": "Scalability"},
            ],
            "strengths": ["Small file"],
            "recommendations": ["Containerize the service"],
        })
        analyzer = CloudReadinessAnalyzer(mock_llm_client)

        assessment = analyzer.assess_file("Legacy.java", LEGACY_JAVA)

        assert assessment.readiness_score == round((1.5 + 6) / 2, 1)
        descriptions = [issue.description for issue in assessment.issues]
        assert descriptions.count('Hardcoded secrets detected') == 1
        assert 'Singleton holds state' in descriptions
        singleton = assessment.issues[descriptions.index('Singleton holds state')]
        assert singleton.severity == Severity.HIGH
        assert 'Small file' in assessment.strengths
        assert 'Containerize the service' in assessment.recommendations

    def test_badly_typed_llm_fields_are_ignored(self, mock_llm_client, cloud_ready_file):
        mock_llm_client.simple_completion.return_value = json.dumps({
            "readinessScore": 7,
            "issues": 3,
            "strengths": "fast startup",
            "recommendations": None,
        })
        analyzer = CloudReadinessAnalyzer(mock_llm_client)

        assessment = analyzer.assess_file("server.js", cloud_ready_file.read_text())

        assert assessment.readiness_score == 8.5
        assert assessment.issues == []
        assert "fast startup" not in assessment.strengths

    def test_malformed_llm_issue_is_dropped(self, mock_llm_client):
        mock_llm_client.simple_completion.return_value = json.dumps({
            "readinessScore": 5,
            "issues": [
                {"category": "Scalability", "description": "Local cache", "recommendation": ["a", "b"]},
                {"category": "State", "description": "Sticky sessions", "recommendation": "Use Redis"},
            ],
        })
        analyzer = CloudReadinessAnalyzer(mock_llm_client)

        assessment = analyzer.assess_file("Legacy.java", LEGACY_JAVA)

        descriptions = [issue.description for issue in assessment.issues]
        assert "Local cache" not in descriptions
        assert "Sticky sessions" in descriptions

    def test_invalid_llm_score_defaults_to_five(self, mock_llm_client, cloud_ready_file):
        mock_llm_client.simple_completion.return_value = '{"readinessScore": "great"}'
        analyzer = CloudReadinessAnalyzer(mock_llm_client)

        assessment = analyzer.assess_file("server.js", cloud_ready_file.read_text())
        assert assessment.readiness_score == 7.5

    def test_llm_failure_is_static_only(self, mock_llm_client, cloud_ready_file):
        mock_llm_client.simple_completion.side_effect = LLMError("down")
        analyzer = CloudReadinessAnalyzer(mock_llm_client)

        assessment = analyzer.assess_file("server.js", cloud_ready_file.read_text())
        assert assessment.readiness_score == 10.0

    def test_unparseable_llm_response_is_static_only(self, mock_llm_client, cloud_ready_file):
        mock_llm_client.simple_completion.return_value = "Looks fine to me."
        analyzer = CloudReadinessAnalyzer(mock_llm_client)

        assessment = analyzer.assess_file("server.js", cloud_ready_file.read_text())
        assert assessment.readiness_score == 10.0

    def test_overall_and_summary(self):
        assessments = [
            CloudAssessment(file_path="a", readiness_score=9),
            CloudAssessment(file_path="b", readiness_score=8),
            CloudAssessment(file_path="c", readiness_score=5),
            CloudAssessment(file_path="d", readiness_score=4.9),
        ]

        assert CloudReadinessAnalyzer.calculate_overall_readiness(assessments) == pytest.approx(6.725)
        assert CloudReadinessAnalyzer.calculate_overall_readiness([]) == 0.0

        summary = CloudReadinessAnalyzer.summarize(assessments)
        assert (summary.high_readiness, summary.medium_readiness, summary.low_readiness) == (2, 1, 1)

    def test_unknown_provider_rejected(self):
        with pytest.raises(ValueError):
            CloudReadinessAnalyzer(cloud_provider="digitalocean")
