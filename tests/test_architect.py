"""Tests for migration planning and AST summaries."""

import json
import pytest
from unittest.mock import Mock

from modernizeai.analysis.architect import (
    ArchitectAnalyzer, fallback_architecture_analysis, parse_architecture_response,
)
from modernizeai.analysis.ast_generator import AstGenerator, detect_language, find_indicators
from modernizeai.analysis.migration_analyzer import (
    MigrationAnalyzer, detect_current_framework, static_migration_plan,
)
from modernizeai.core.models import FileAst, Severity
from modernizeai.llm import LLMError
from modernizeai.static_analysis import PackagedCodebase


ARCHITECTURE_RESPONSE = {
    "complexityScore": 8,
    "estimatedEffort": "4-6 months",
    "highLevelSteps": [
        {"title": "Replace EJBs", "description": "Turn session beans into Spring services", "effort": "3 weeks"},
    ],
    "frameworkChanges": [
        {"component": "Persistence", "action": "Migrate", "description": "JPA via Spring Data",
         "before": "@PersistenceContext", "after": "JpaRepository"},
    ],
    "dependencyChanges": {"remove": ["jboss-javaee-7.0"], "add": ["spring-boot-starter-web"], "update": []},
    "codeExamples": [{"description": "Servlet to controller", "before": "doGet", "after": "@GetMapping"}],
    "riskAssessment": {"level": "high", "risks": ["Remote EJB clients"], "mitigations": ["Strangler pattern"]},
    "recommendations": ["Start with stateless beans"],
}


class TestAstGenerator:
    """Test per-file summaries."""

    def test_detect_language(self):
        assert detect_language("Foo.java") == "java"
        assert detect_language("app.TSX") == "tsx"
        assert detect_language("README") == "unknown"

    def test_python_with_tree_sitter(self):
        content = '''import os
from pathlib import Path

class Foo:
    def bar(self):
        return 1

def baz():
    pass
'''
        ast = AstGenerator().generate_ast("mod.py", content)

        assert ast.parser == "tree-sitter"
        assert ast.language == "python"
        assert ast.metadata.functions == 2
        assert ast.metadata.classes == 1
        assert ast.metadata.imports == 2
        assert ast.node_count > 0

    def test_java_indicators(self, sample_java_project):
        java_file = next(sample_java_project.rglob("*.java"))
        ast = AstGenerator().generate_for_file(java_file)

        assert ast.language == "java"
        assert ast.metadata.classes == 1
        assert ast.metadata.imports == 2
        assert "javax.servlet" in ast.indicators
        assert "javax.persistence" in ast.indicators

    def test_regex_fallback(self):
        ast = AstGenerator().generate_ast("app.rb", "class Foo\n  def bar\n  end\nend\n")

        assert ast.parser == "text"
        assert ast.metadata.classes == 1
        assert ast.metadata.functions == 1
        assert ast.metadata.exports == 0

    def test_without_metadata(self):
        ast = AstGenerator().generate_ast("a.yml", "key: value\n", include_metadata=False)
        assert ast.metadata is None

    def test_unreadable_files_skipped(self, temp_dir):
        good = temp_dir / "a.py"
        good.write_text("x = 1\n")
        asts = AstGenerator().generate_for_files([good, temp_dir / "missing.py"])

        assert [a.file_path for a in asts] == [str(good)]

    def test_find_indicators(self):
        assert find_indicators("@SpringBootApplication\nimport javax.servlet.Filter;") == [
            "@SpringBootApplication", "javax.servlet",
        ]


class TestFrameworkDetection:
    """Test framework detection order."""

    def test_first_framework_wins(self):
        asts = [
            FileAst(file_path="A.java", language="java", indicators=["javax.servlet"]),
            FileAst(file_path="B.java", language="java", indicators=["@SpringBootApplication"]),
        ]
        assert detect_current_framework(asts) == "Spring Boot 2"

    def test_java_ee(self):
        asts = [FileAst(file_path="A.java", language="java", indicators=["javax.ejb"])]
        assert detect_current_framework(asts) == "Java EE"

    def test_unknown(self):
        assert detect_current_framework([]) == "Unknown"


class TestMigrationAnalyzer:
    """Test the AST-driven migration plan."""

    def test_static_plan(self):
        plan = static_migration_plan("springboot3", "21")

        assert len(plan['migrationSteps']) == 5
        assert plan['complexityScore'] == 7
        assert '<java.version>21</java.version>' in plan['fileStructureChanges'][1]['after']
        assert static_migration_plan("springboot2", "17")['migrationSteps'] == []

    def test_llm_and_static_combined(self, mock_llm_client):
        mock_llm_client.simple_completion.return_value = json.dumps({
            "complexityScore": 8,
            "estimatedEffort": "6 weeks",
            "migrationSteps": [
                {"title": "Replace JNDI lookups", "priority": "high", "category": "code", "estimatedHours": 5},
                {"description": "missing title"},
            ],
            "targetAsts": [{"filePath": "UserServlet.java", "changes": ["Use @RestController"]}],
            "dependencyChanges": {"add": ["spring-boot-starter-data-jpa"]},
        })
        asts = [FileAst(file_path="UserServlet.java", language="java", indicators=["javax.servlet"])]

        analysis = MigrationAnalyzer(mock_llm_client).analyze_migration(asts, "springboot3", "21", "/app")

        assert analysis.current_framework == "Java EE"
        assert analysis.complexity_score == 8
        assert analysis.estimated_effort == "6 weeks"
        assert analysis.migration_steps[0].title == "Replace JNDI lookups"
        assert analysis.migration_steps[0].estimated_hours == 5
        assert analysis.migration_steps[0].priority == "High"
        assert len(analysis.migration_steps) == 6
        assert analysis.target_asts[0].file_path == "UserServlet.java"
        assert analysis.dependency_changes.add[0] == "spring-boot-starter-data-jpa"
        assert "spring-boot-starter-parent:3.2.0" in analysis.dependency_changes.add

    def test_badly_typed_risk_assessment(self, mock_llm_client):
        mock_llm_client.simple_completion.return_value = json.dumps({
            "riskAssessment": {"level": "high", "factors": 3, "mitigations": "test more"},
            "migrationSteps": [{"title": "Bad hours", "estimatedHours": "lots"}],
        })

        analysis = MigrationAnalyzer(mock_llm_client).analyze_migration([], "springboot3", "21", "/app")

        assert analysis.risk_assessment.level == Severity.HIGH
        assert analysis.risk_assessment.factors == []
        assert analysis.risk_assessment.mitigations == []
        assert "Bad hours" not in [step.title for step in analysis.migration_steps]
        assert len(analysis.migration_steps) == 5

    def test_llm_failure_uses_fallback(self, mock_llm_client):
        mock_llm_client.simple_completion.side_effect = LLMError("down")

        analysis = MigrationAnalyzer(mock_llm_client).analyze_migration([], "springboot3", "17", "/app")

        assert analysis.complexity_score == 6
        assert analysis.estimated_effort == "2-4 weeks"
        assert analysis.migration_steps[0].title == "Prepare Migration Environment"
        assert analysis.migration_steps[0].estimated_hours == 4
        assert analysis.risk_assessment.level == Severity.MEDIUM

    def test_only_java_and_config_files_in_prompt(self, mock_llm_client):
        asts = [
            FileAst(file_path="A.java", language="java"),
            FileAst(file_path="app.yml", language="yaml"),
            FileAst(file_path="ui.js", language="javascript"),
        ]
        MigrationAnalyzer(mock_llm_client).analyze_migration(asts, "springboot3", "21", "/app")

        prompt = mock_llm_client.simple_completion.call_args.args[0]
        assert "A.java" in prompt
        assert "app.yml" in prompt
        assert "ui.js" not in prompt


class TestArchitectAnalyzer:
    """Test the packaged-codebase architecture analysis."""

    def test_parse_response(self):
        analysis = parse_architecture_response(ARCHITECTURE_RESPONSE)

        assert analysis.complexity_score == 8
        assert analysis.high_level_steps[0].effort == "3 weeks"
        assert analysis.framework_changes[0].after == "JpaRepository"
        assert analysis.dependency_changes.remove == ["jboss-javaee-7.0"]
        assert analysis.code_examples[0].after == "@GetMapping"
        assert analysis.risk_assessment.level == Severity.HIGH
        assert analysis.risk_assessment.factors == ["Remote EJB clients"]
        assert analysis.used_fallback is False

    def test_analyze_architecture(self, mock_llm_client):
        mock_llm_client.simple_completion.return_value = "```json\n" + json.dumps(ARCHITECTURE_RESPONSE) + "\n```"
        analyzer = ArchitectAnalyzer(mock_llm_client, packager=Mock())

        analysis = analyzer.analyze_architecture("=== pom.xml ===", "jboss", "springboot3", "21", "/app")

        assert analysis.estimated_effort == "4-6 months"
        assert mock_llm_client.simple_completion.call_args.kwargs['max_tokens'] == 4000

    @pytest.mark.parametrize("response", ["not json", '{"complexityScore": "very"}'])
    def test_bad_response_uses_fallback(self, mock_llm_client, response):
        mock_llm_client.simple_completion.return_value = response
        analyzer = ArchitectAnalyzer(mock_llm_client, packager=Mock())

        analysis = analyzer.analyze_architecture("code", "weblogic", "springboot3", "17", "/app")

        assert analysis.used_fallback is True
        assert analysis.high_level_steps[2].description == "Migrate from weblogic to springboot3 core components"

    def test_fallback_content(self):
        analysis = fallback_architecture_analysis("jboss", "springboot3", "21")

        assert analysis.complexity_score == 7
        assert analysis.estimated_effort == "3-6 months"
        assert [s.title for s in analysis.high_level_steps] == [
            "Assessment and Planning", "Environment Setup", "Core Framework Migration", "Testing and Validation",
        ]
        assert analysis.dependency_changes.update == ["Java version to 21"]

    def test_analyze_project(self, mock_llm_client, sample_java_project):
        mock_llm_client.simple_completion.side_effect = LLMError("down")
        packager = Mock()
        packager.package.return_value = PackagedCodebase(content="Project: x\nFiles: 2\n\n", packager="manual")
        progress = Mock()
        analyzer = ArchitectAnalyzer(mock_llm_client, packager=packager)

        result = analyzer.analyze_project(
            sample_java_project, "jboss", "springboot3", "21",
            ast_files=sorted(sample_java_project.rglob("*.java")),
            progress=progress,
        )

        packager.package.assert_called_once_with(sample_java_project)
        assert result.packaged.packager == "manual"
        assert result.architecture.used_fallback is True
        assert result.migration.current_framework == "Java EE"
        assert progress.call_count >= 3

    def test_analyze_project_without_ast_files(self, mock_llm_client, temp_dir):
        packager = Mock()
        packager.package.return_value = PackagedCodebase(content="", packager="manual")
        analyzer = ArchitectAnalyzer(mock_llm_client, packager=packager)

        result = analyzer.analyze_project(temp_dir, "tomcat", "springboot2", "17")
        assert result.migration is None
