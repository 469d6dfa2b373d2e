"""Architecture migration analysis for legacy Java application servers."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from ..core.models import (
    ArchitectureAnalysis, CodeExample, DependencyChanges, FrameworkChange, MigrationAnalysis,
    MigrationStep, RiskAssessment,
)
from ..llm import LLMClient, LLMError, extract_json_object
from ..llm.prompts import build_architecture_prompt
from ..static_analysis.packager import CodebasePackager, PackagedCodebase
from .ast_generator import AstGenerator
from .migration_analyzer import MigrationAnalyzer


logger = logging.getLogger(__name__)


SOURCE_FRAMEWORKS = ['jboss', 'wildfly', 'tomcat', 'websphere', 'weblogic']
TARGET_FRAMEWORKS = ['springboot3', 'springboot2']
JAVA_VERSIONS = ['17', '21', '11']


def fallback_architecture_analysis(source: str, target: str, java_version: str) -> ArchitectureAnalysis:
    """Generic plan used whenever the LLM answer is missing or unusable."""
    return ArchitectureAnalysis(
        complexity_score=7,
        estimated_effort='3-6 months',
        high_level_steps=[
            MigrationStep(
                title='Assessment and Planning',
                description=f'Analyze current {source} application architecture and dependencies',
                effort='2-3 weeks',
            ),
            MigrationStep(
                title='Environment Setup',
                description=f'Set up {target} development environment with Java {java_version}',
                effort='1 week',
            ),
            MigrationStep(
                title='Core Framework Migration',
                description=f'Migrate from {source} to {target} core components',
                effort='4-8 weeks',
            ),
            MigrationStep(
                title='Testing and Validation',
                description='Comprehensive testing of migrated application',
                effort='3-4 weeks',
            ),
        ],
        framework_changes=[
            FrameworkChange(
                component='Application Server',
                action='Replace',
                description=f'Replace {source} application server with embedded {target} server',
                before=f'{source} EAR/WAR deployment',
                after=f'{target} executable JAR',
            ),
        ],
        dependency_changes=DependencyChanges(
            remove=[f'{source} dependencies'],
            add=[f'{target} starters'],
            update=[f'Java version to {java_version}'],
        ),
        code_examples=[],
        risk_assessment=RiskAssessment(
            level='Medium',
            factors=['Framework compatibility issues', 'Configuration complexity'],
            mitigations=['Incremental migration', 'Comprehensive testing'],
        ),
        recommendations=[
            'Plan migration in phases',
            'Set up comprehensive testing',
            'Train team on Spring Boot',
            'Document migration process',
        ],
        used_fallback=True,
    )


def _dicts(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def parse_architecture_response(data: Dict[str, Any]) -> ArchitectureAnalysis:
    """Build an ArchitectureAnalysis from the LLM's camelCase JSON.

    Raises ValidationError when required fields have the wrong shape.
    """
    dependencies = data.get('dependencyChanges')
    dependencies = dependencies if isinstance(dependencies, dict) else {}
    risk = data.get('riskAssessment')
    risk = risk if isinstance(risk, dict) else {}

    return ArchitectureAnalysis(
        complexity_score=data.get('complexityScore') or 5,
        estimated_effort=str(data.get('estimatedEffort') or 'Unknown'),
        high_level_steps=[
            MigrationStep(
                title=str(step.get('title') or 'Untitled step'),
                description=str(step.get('description') or ''),
                effort=step.get('effort'),
            )
            for step in _dicts(data.get('highLevelSteps'))
        ],
        framework_changes=[
            FrameworkChange(
                component=str(change.get('component') or 'Unknown'),
                action=str(change.get('action') or 'Review'),
                description=str(change.get('description') or ''),
                before=change.get('before'),
                after=change.get('after'),
            )
            for change in _dicts(data.get('frameworkChanges'))
        ],
        dependency_changes=DependencyChanges(
            remove=_strings(dependencies.get('remove')),
            add=_strings(dependencies.get('add')),
            update=_strings(dependencies.get('update')),
        ),
        code_examples=[
            CodeExample(
                description=str(example.get('description') or ''),
                before=str(example.get('before') or ''),
                after=str(example.get('after') or ''),
            )
            for example in _dicts(data.get('codeExamples'))
        ],
        risk_assessment=RiskAssessment(
            level=risk.get('level'),
            factors=_strings(risk.get('risks') or risk.get('factors')),
            mitigations=_strings(risk.get('mitigations')),
        ),
        recommendations=_strings(data.get('recommendations')),
    )


@dataclass
class ArchitectResult:
    """Everything the architect command reports."""
    packaged: PackagedCodebase
    architecture: ArchitectureAnalysis
    migration: Optional[MigrationAnalysis] = None


class ArchitectAnalyzer:
    """Packages a codebase and asks the LLM how to move it to Spring Boot."""

    def __init__(self,
                 llm_client: LLMClient,
                 packager: Optional[CodebasePackager] = None,
                 ast_generator: Optional[AstGenerator] = None,
                 prompt_char_limit: int = 15000):
        self.llm_client = llm_client
        self.packager = packager or CodebasePackager()
        self.ast_generator = ast_generator or AstGenerator()
        self.migration_analyzer = MigrationAnalyzer(llm_client)
        self.prompt_char_limit = prompt_char_limit

    def analyze_architecture(self, packaged_content: str, source: str, target: str,
                             java_version: str, project_path: str) -> ArchitectureAnalysis:
        prompt = build_architecture_prompt(
            packaged_content, source, target, java_version, project_path,
            char_limit=self.prompt_char_limit,
        )
        try:
            response = self.llm_client.simple_completion(prompt, max_tokens=4000, temperature=0.1)
        except LLMError as e:
            logger.warning(f"LLM architectural analysis failed, using fallback analysis: {e}")
            return fallback_architecture_analysis(source, target, java_version)

        data = extract_json_object(response)
        if data is None:
            logger.warning("LLM architectural analysis was not valid JSON, using fallback analysis")
            return fallback_architecture_analysis(source, target, java_version)

        try:
            return parse_architecture_response(data)
        except ValidationError as e:
            logger.warning(f"LLM architectural analysis had an unexpected shape, using fallback analysis: {e}")
            return fallback_architecture_analysis(source, target, java_version)

    def analyze_project(self,
                        project_path: Path,
                        source: str,
                        target: str,
                        java_version: str,
                        ast_files: Optional[List[Path]] = None,
                        progress: Optional[Callable[[str], None]] = None) -> ArchitectResult:
        if progress:
            progress("Packaging codebase with repomix...")
        packaged = self.packager.package(project_path)

        if progress:
            progress("Analyzing codebase architecture...")
        architecture = self.analyze_architecture(
            packaged.content, source, target, java_version, str(project_path)
        )

        migration = None
        if ast_files:
            if progress:
                progress(f"Building migration plan from {len(ast_files)} files...")
            asts = self.ast_generator.generate_for_files(ast_files)
            migration = self.migration_analyzer.analyze_migration(
                asts, target, java_version, str(project_path)
            )

        return ArchitectResult(packaged=packaged, architecture=architecture, migration=migration)
