"""Prompt templates for the three analyses."""

import json
from typing import Any, Dict, List


CVE_PROMPT = """
Analyze the following code file for potential security vulnerabilities (CVEs) and modernization opportunities:

File: {file_path}
Content:
```
{content}
```

Please provide:
1. Identified security vulnerabilities with CVE references if applicable
2. Severity level (Critical, High, Medium, Low)
3. Line numbers where issues occur
4. Specific recommendations for fixing each vulnerability
5. Suggested modern alternatives or libraries

Format your response as a JSON object with the following structure:
{{
  "vulnerabilities": [
    {{
      "type": "vulnerability_type",
      "severity": "High|Medium|Low|Critical",
      "lineNumber": number,
      "description": "detailed description",
      "cveId": "CVE-XXXX-XXXX or null",
      "recommendation": "specific fix recommendation"
    }}
  ]
}}
"""


DEPENDENCY_VULNERABILITY_PROMPT = """
You are reviewing a known vulnerability reported by OWASP Dependency-Check.

CVE: {cve_id}
Affected artifact: {artifact}
Severity: {severity} (CVSS {cvss_score})
Description: {description}

Assess the real-world risk for an application that ships this dependency and
how hard it is to remediate.

Format your response as a JSON object:
{{
  "riskAssessment": "string",
  "remediationPriority": "Immediate|High|Medium|Low",
  "migrationComplexity": "Low|Medium|High",
  "recommendation": "string"
}}
"""


_ATLAS_CRITERIA = """
9. MongoDB Atlas compatibility (connection strings, drivers)
10. Atlas App Services integration potential
11. Atlas Search and Analytics readiness
12. Atlas Device Sync considerations"""


CLOUD_READINESS_PROMPT = """
Assess the following code file for cloud deployment readiness on {provider_description}:

File: {file_path}
Content:
```
{content}
```

Please evaluate:
1. Cloud-native patterns usage
2. Configuration management (environment variables, secrets)
3. Logging and monitoring readiness
4. Scalability considerations
5. Container/serverless compatibility
6. Database and storage patterns
7. Security best practices for cloud
8. CI/CD readiness{extra_criteria}

Provide a readiness score (0-10) and specific recommendations.

Format your response as a JSON object:
{{
  "readinessScore": number,
  "issues": [
    {{
      "category": "category_name",
      "severity": "High|Medium|Low",
      "description": "issue description",
      "recommendation": "specific recommendation"
    }}
  ],
  "strengths": ["list of cloud-ready aspects"],
  "recommendations": ["overall recommendations for improvement"]
}}
"""


ARCHITECTURE_PROMPT = """You are a conversion assistant. Please convert the following {source} application to a {target} application. Ensure that the resulting recommendations use proper Spring Boot conventions. Give me high level steps of what needs to be done to migrate this.

Project Path: {project_path}
Source Framework: {source}
Target Framework: {target} with Java {java_version}

Packaged Codebase:
{packaged_content}

Please analyze this codebase and provide:

1. **High-Level Migration Steps**: What are the major phases of this migration?
2. **Framework-Specific Changes**: What {source} components need to be replaced with Spring Boot equivalents?
3. **Dependency Analysis**: What dependencies need to be removed, added, or updated?
4. **Configuration Migration**: How to migrate from {source} configuration to Spring Boot configuration?
5. **Code Transformation Examples**: Show before/after examples for key patterns
6. **Complexity Assessment**: Rate the migration complexity (1-10) and estimated effort
7. **Risk Assessment**: What are the main risks and how to mitigate them?

Focus on:
- {source} to Spring Boot migration patterns
- Java {java_version} best practices
- Dependency injection patterns
- Configuration management
- Web layer migration (Servlets to Spring MVC/WebFlux)
- Data access layer migration
- Security configuration migration
- Testing framework updates

Format your response as a JSON object:
{{
  "complexityScore": number,
  "estimatedEffort": "string",
  "highLevelSteps": [
    {{"title": "string", "description": "string", "effort": "string"}}
  ],
  "frameworkChanges": [
    {{"component": "string", "action": "string", "description": "string", "before": "string", "after": "string"}}
  ],
  "dependencyChanges": {{"remove": ["string"], "add": ["string"], "update": ["string"]}},
  "codeExamples": [
    {{"description": "string", "before": "string", "after": "string"}}
  ],
  "riskAssessment": {{"level": "Low|Medium|High|Critical", "risks": ["string"], "mitigations": ["string"]}},
  "recommendations": ["string"]
}}"""


MIGRATION_PROMPT = """
Analyze the following Java project ASTs and provide a comprehensive migration plan from {current} to {target} with Java {java_version}.

Current Project ASTs:
{asts}

Project Path: {project_path}
Current Framework: {current}
Target: {target} with Java {java_version}

Please provide a detailed migration analysis with:

1. **Complexity Assessment**: Rate complexity (1-10) and estimated effort (hours/days/weeks)
2. **File Structure Changes**: What directories, packages, and files need to be renamed, moved, or created
3. **Migration Steps**: Detailed step-by-step migration plan with priorities
4. **Target AST Structure**: How the code structure should look after migration
5. **Dependency Changes**: What dependencies to remove, add, or update
6. **Configuration Changes**: Changes needed in application.properties, pom.xml, etc.
7. **Risk Assessment**: Potential risks and mitigation strategies

Focus specifically on:
- Spring Boot 3 changes (Spring Framework 6, Spring Security 6)
- Java {java_version} features and compatibility
- javax.* to jakarta.* package migrations
- Updated configuration patterns

Format your response as a JSON object with the following structure:
{{
  "complexityScore": number,
  "estimatedEffort": "string",
  "fileStructureChanges": [
    {{"type": "rename|move|create|delete|modify", "description": "string", "before": "string", "after": "string", "reason": "string"}}
  ],
  "migrationSteps": [
    {{"title": "string", "description": "string", "priority": "High|Medium|Low",
      "category": "Dependencies|Configuration|Code|Testing|Documentation",
      "estimatedHours": number, "codeChanges": ["string"]}}
  ],
  "targetAsts": [
    {{"filePath": "string", "changes": ["string"], "newDependencies": ["string"]}}
  ],
  "dependencyChanges": {{"remove": ["string"], "add": ["string"], "update": ["string"]}},
  "configurationChanges": ["string"],
  "riskAssessment": {{"level": "Low|Medium|High|Critical", "factors": ["string"]}},
  "recommendations": ["string"]
}}
"""


def build_cve_prompt(file_path: str, content: str) -> str:
    return CVE_PROMPT.format(file_path=file_path, content=content)


def build_dependency_prompt(cve_id: str, artifact: str, severity: str,
                            cvss_score: float, description: str) -> str:
    return DEPENDENCY_VULNERABILITY_PROMPT.format(
        cve_id=cve_id,
        artifact=artifact,
        severity=severity,
        cvss_score=cvss_score,
        description=description,
    )


def build_cloud_readiness_prompt(file_path: str, content: str, cloud_provider: str) -> str:
    if cloud_provider == 'atlas':
        provider_description = 'MongoDB Atlas deployment'
        extra_criteria = _ATLAS_CRITERIA
    else:
        provider_description = f'{cloud_provider.upper()} cloud deployment'
        extra_criteria = ''

    return CLOUD_READINESS_PROMPT.format(
        provider_description=provider_description,
        file_path=file_path,
        content=content,
        extra_criteria=extra_criteria,
    )


def build_architecture_prompt(packaged_content: str, source: str, target: str,
                              java_version: str, project_path: str,
                              char_limit: int = 15000) -> str:
    return ARCHITECTURE_PROMPT.format(
        source=source.upper(),
        target=target.upper(),
        java_version=java_version,
        project_path=project_path,
        packaged_content=packaged_content[:char_limit],
    )


def build_migration_prompt(ast_summaries: List[Dict[str, Any]], current: str, target: str,
                           java_version: str, project_path: str, max_files: int = 5) -> str:
    return MIGRATION_PROMPT.format(
        asts=json.dumps(ast_summaries[:max_files], indent=2),
        current=current,
        target=target.upper(),
        java_version=java_version,
        project_path=project_path,
    )
