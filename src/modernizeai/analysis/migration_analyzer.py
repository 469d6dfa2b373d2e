"""Framework migration plan built from per-file AST summaries."""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..core.models import (
    DependencyChanges, FileAst, FileStructureChange, MigrationAnalysis, MigrationStep,
    RiskAssessment, TargetAst,
)
from ..llm import LLMClient, LLMError, parse_llm_json
from ..llm.prompts import build_migration_prompt
from .ast_generator import FRAMEWORK_INDICATORS


logger = logging.getLogger(__name__)


MIGRATION_EXTENSIONS = ('.java', '.xml', '.properties', '.yml')


def detect_current_framework(asts: List[FileAst]) -> str:
    """Name of the first framework whose markers appear in any file.

    Frameworks are tried in priority order across all files, so a Spring Boot
    marker anywhere wins over javax.* markers in an earlier file.
    """
    for framework, markers in FRAMEWORK_INDICATORS.items():
        for ast in asts:
            if any(marker in ast.indicators for marker in markers):
                return framework
    return 'Unknown'


def static_migration_plan(target_framework: str, target_java_version: str) -> Dict[str, Any]:
    """Well-known steps for the target; empty lists for targets without a recipe."""
    changes: List[Dict[str, Any]] = []
    steps: List[Dict[str, Any]] = []
    dependency_changes: Dict[str, List[str]] = {'remove': [], 'add': [], 'update': []}

    if target_framework == 'springboot3':
        changes.append({
            'type': 'modify',
            'description': 'Update package imports from javax.* to jakarta.*',
            'before': 'javax.servlet, javax.persistence, javax.validation',
            'after': 'jakarta.servlet, jakarta.persistence, jakarta.validation',
            'reason': 'Spring Boot 3 uses Jakarta EE 9+ which moved from javax to jakarta namespace',
        })
        changes.append({
            'type': 'modify',
            'description': f'Update Maven/Gradle configuration for Java {target_java_version}',
            'before': '<java.version>11</java.version>',
            'after': f'<java.version>{target_java_version}</java.version>',
            'reason': 'Target Java version upgrade',
        })

        steps.extend([
            {
                'title': 'Update Java Version',
                'description': f'Upgrade Java version to {target_java_version} and update build configuration',
                'priority': 'High',
                'category': 'Configuration',
                'estimated_hours': 2,
                'code_changes': ['Update pom.xml or build.gradle', 'Set JAVA_HOME', 'Update CI/CD pipelines'],
            },
            {
                'title': 'Package Migration javax to jakarta',
                'description': 'Replace all javax.* imports with jakarta.* equivalents',
                'priority': 'High',
                'category': 'Code',
                'estimated_hours': 8,
                'code_changes': [
                    'javax.servlet -> jakarta.servlet',
                    'javax.persistence -> jakarta.persistence',
                    'javax.validation -> jakarta.validation',
                ],
            },
            {
                'title': 'Spring Boot Dependencies Update',
                'description': 'Update Spring Boot version to 3.x and related dependencies',
                'priority': 'High',
                'category': 'Dependencies',
                'estimated_hours': 4,
                'code_changes': ['Update spring-boot-starter-parent to 3.x', 'Update other Spring dependencies'],
            },
            {
                'title': 'Configuration Properties Migration',
                'description': 'Update deprecated configuration properties',
                'priority': 'Medium',
                'category': 'Configuration',
                'estimated_hours': 3,
                'code_changes': ['Update application.properties/yml', 'Review custom configurations'],
            },
            {
                'title': 'Security Configuration Update',
                'description': 'Update Spring Security configuration for version 6',
                'priority': 'High',
                'category': 'Code',
                'estimated_hours': 6,
                'code_changes': ['Update WebSecurityConfigurerAdapter usage', 'Review authentication flows'],
            },
        ])

        dependency_changes['add'].extend(['spring-boot-starter-parent:3.2.0', 'spring-security-config:6.2.0'])
        dependency_changes['remove'].append('org.springframework.security:spring-security-config:5.x')

    return {
        'fileStructureChanges': changes,
        'migrationSteps': steps,
        'dependencyChanges': dependency_changes,
        'complexityScore': 7,
        'estimatedEffort': '2-3 weeks',
    }


def fallback_migration_analysis(target_java_version: str) -> Dict[str, Any]:
    return {
        'complexityScore': 6,
        'estimatedEffort': '2-4 weeks',
        'fileStructureChanges': [{
            'type': 'modify',
            'description': 'Package migration from javax to jakarta',
            'before': 'javax.*',
            'after': 'jakarta.*',
            'reason': 'Spring Boot 3 requirement',
        }],
        'migrationSteps': [{
            'title': 'Prepare Migration Environment',
            'description': f'Set up development environment with Java {target_java_version} and Spring Boot 3',
            'priority': 'High',
            'category': 'Configuration',
            'estimatedHours': 4,
        }],
        'targetAsts': [],
        'dependencyChanges': {
            'remove': ['spring-boot-2.x dependencies'],
            'add': ['spring-boot-3.x dependencies'],
            'update': [f'Java version to {target_java_version}'],
        },
        'configurationChanges': ['Update Java version', 'Migrate to Jakarta EE'],
        'riskAssessment': {
            'level': 'Medium',
            'factors': ['Package namespace changes', 'Configuration updates'],
        },
        'recommendations': ['Test thoroughly', 'Migrate incrementally', 'Update documentation'],
    }


def _score(value: Any, default: float) -> float:
    try:
        return float(value) if value else default
    except (TypeError, ValueError):
        return default


def _list(data: Dict[str, Any], key: str) -> List[Any]:
    value = data.get(key)
    return value if isinstance(value, list) else []


def _parse_items(model, raw_items: List[Any], aliases: Optional[Dict[str, str]] = None) -> List[Any]:
    """Build models from loosely shaped dicts, dropping the ones that do not fit."""
    items = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        data = dict(raw)
        for source, target in (aliases or {}).items():
            if source in data and target not in data:
                data[target] = data.pop(source)
        try:
            items.append(model(**data))
        except (ValidationError, TypeError) as e:
            logger.debug(f"Dropping malformed {model.__name__}: {e}")
    return items


_STEP_ALIASES = {'estimatedHours': 'estimated_hours', 'codeChanges': 'code_changes'}
_TARGET_AST_ALIASES = {'filePath': 'file_path', 'newDependencies': 'new_dependencies'}


def combine_migration_analysis(llm_analysis: Dict[str, Any], static_analysis: Dict[str, Any],
                               current_framework: str, target_framework: str,
                               target_java_version: str) -> MigrationAnalysis:
    """LLM scalars win when present; lists are LLM items followed by static ones."""
    llm_deps = llm_analysis.get('dependencyChanges') or {}
    static_deps = static_analysis.get('dependencyChanges') or {}
    if not isinstance(llm_deps, dict):
        llm_deps = {}

    dependency_changes = DependencyChanges(**{
        key: [str(d) for d in _list(llm_deps, key)] + [str(d) for d in _list(static_deps, key)]
        for key in ('remove', 'add', 'update')
    })

    raw_risk = llm_analysis.get('riskAssessment') or static_analysis.get('riskAssessment')
    if isinstance(raw_risk, dict):
        risk = RiskAssessment(
            level=raw_risk.get('level'),
            factors=[str(f) for f in _list(raw_risk, 'factors') or _list(raw_risk, 'risks')],
            mitigations=[str(m) for m in _list(raw_risk, 'mitigations')],
        )
    else:
        risk = RiskAssessment(level='Medium', factors=['Framework migration complexity'])

    recommendations = (
        _list(llm_analysis, 'recommendations')
        or _list(static_analysis, 'recommendations')
        or ['Plan migration in phases', 'Set up comprehensive testing', 'Update documentation']
    )

    return MigrationAnalysis(
        current_framework=current_framework,
        target_framework=target_framework,
        target_java_version=target_java_version,
        complexity_score=_score(llm_analysis.get('complexityScore'), static_analysis['complexityScore']),
        estimated_effort=str(llm_analysis.get('estimatedEffort') or static_analysis['estimatedEffort']),
        file_structure_changes=(
            _parse_items(FileStructureChange, _list(llm_analysis, 'fileStructureChanges'))
            + _parse_items(FileStructureChange, _list(static_analysis, 'fileStructureChanges'))
        ),
        migration_steps=(
            _parse_items(MigrationStep, _list(llm_analysis, 'migrationSteps'), _STEP_ALIASES)
            + _parse_items(MigrationStep, _list(static_analysis, 'migrationSteps'), _STEP_ALIASES)
        ),
        target_asts=_parse_items(TargetAst, _list(llm_analysis, 'targetAsts'), _TARGET_AST_ALIASES),
        dependency_changes=dependency_changes,
        configuration_changes=(
            [str(c) for c in _list(llm_analysis, 'configurationChanges')]
            + [str(c) for c in _list(static_analysis, 'configurationChanges')]
        ),
        risk_assessment=risk,
        recommendations=[str(r) for r in recommendations],
    )


class MigrationAnalyzer:
    """Plans a framework migration from AST summaries."""

    def __init__(self, llm_client: LLMClient):
        self.llm_client = llm_client

    def analyze_migration(self, asts: List[FileAst], target_framework: str,
                          target_java_version: str, project_path: str) -> MigrationAnalysis:
        migration_asts = [
            ast for ast in asts
            if ast.language == 'java' or ast.file_path.endswith(MIGRATION_EXTENSIONS)
        ]
        current_framework = detect_current_framework(asts)

        llm_analysis = self._llm_analysis(
            migration_asts, current_framework, target_framework, target_java_version, project_path
        )
        static_analysis = static_migration_plan(target_framework, target_java_version)

        return combine_migration_analysis(
            llm_analysis, static_analysis, current_framework, target_framework, target_java_version
        )

    def _llm_analysis(self, asts: List[FileAst], current_framework: str, target_framework: str,
                      target_java_version: str, project_path: str) -> Dict[str, Any]:
        prompt = build_migration_prompt(
            [ast.summary() for ast in asts],
            current=current_framework,
            target=target_framework,
            java_version=target_java_version,
            project_path=project_path,
        )
        try:
            response = self.llm_client.simple_completion(prompt, max_tokens=3000)
        except LLMError as e:
            logger.warning(f"LLM migration analysis failed, using fallback analysis: {e}")
            return fallback_migration_analysis(target_java_version)

        return parse_llm_json(response, fallback_migration_analysis(target_java_version))
