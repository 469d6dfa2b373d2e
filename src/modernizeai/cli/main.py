"""Command-line interface for ModernizeAI."""

import click
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Any

from ..core import Config, ConfigError, CloudProvider, Severity
from ..core.models import CloudAssessment, CveAnalysisResult
from ..llm import LLMClient, LLMError
from ..analysis import AstGenerator, ArchitectAnalyzer, ArchitectResult, CloudReadinessAnalyzer, CveAnalyzer
from ..analysis.architect import SOURCE_FRAMEWORKS, TARGET_FRAMEWORKS, JAVA_VERSIONS
from ..static_analysis import CodebasePackager, DependencyCheckAnalyzer
from ..utils.console import ReportConsole
from ..utils.file_scanner import FileScanner, FileScanError
from ..utils.output import save_analysis_results


logger = logging.getLogger(__name__)

SEVERITY_COLORS = {
    Severity.CRITICAL: 'red',
    Severity.HIGH: 'red',
    Severity.MEDIUM: 'yellow',
    Severity.LOW: 'green',
}


def setup_logging(verbose: bool, quiet: bool) -> None:
    """Setup logging configuration."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def fail(message: str, verbose: bool = False) -> None:
    """Print an error to stderr and exit with status 1."""
    click.secho(f"Error: {message}", fg='red', err=True)
    if verbose:
        import traceback
        traceback.print_exc()
    sys.exit(1)


def _validate_path(path: Path) -> Path:
    if not path.exists():
        fail(f"Path does not exist: {path}")
    return path


def _build_llm_client(config: Config, required: bool, purpose: str) -> Optional[LLMClient]:
    if not config.llm.api_key:
        if required:
            fail(
                f"LLM API key is required for {purpose}. "
                "Set LLM_API_KEY environment variable or use --llm-api-key option."
            )
        return None
    try:
        return LLMClient.from_config(config.llm)
    except LLMError as e:
        fail(str(e))


def _scan_files(config: Config, path: Path, extensions: List[str]) -> List[Path]:
    scanner = FileScanner(extensions)
    files = scanner.scan_directory(path, config.scan.recursive)
    kept = scanner.filter_files(files, max_size=config.scan.max_file_size_mb * 1024 * 1024)

    for skipped in sorted(set(files) - set(kept)):
        try:
            file_info = scanner.get_file_info(skipped)
        except OSError as e:
            logger.warning(f"Skipping {skipped}: {e}")
            continue
        logger.warning(
            f"Skipping {file_info['relative_path']}: {file_info['size']} bytes "
            f"exceeds the {config.scan.max_file_size_mb} MB limit"
        )
    return kept


def _save(console: ReportConsole, config: Config, analysis_type: str,
          data: Dict[str, Any], path: Path) -> None:
    json_file, markdown_file = save_analysis_results(
        analysis_type, data, console.transcript, str(path), config.output.output_dir
    )
    console.echo("")
    console.echo("Analysis results saved:", fg='blue', record=False)
    console.echo(f"   JSON: {json_file}", fg='blue', record=False)
    console.echo(f"   Markdown: {markdown_file}", fg='blue', record=False)


def _llm_options(func):
    """Options shared by every LLM-backed command."""
    options = [
        click.option('--llm-endpoint', '-e', help='LLM API endpoint URL (env: LLM_ENDPOINT)'),
        click.option('--llm-api-key', '-k', help='LLM API key (env: LLM_API_KEY)'),
        click.option('--llm-model', help='LLM model name (env: LLM_MODEL)'),
        click.option('--llm-provider', type=click.Choice(['openai', 'groq']), help='LLM SDK to use'),
        click.option('--output-dir', '-o', type=click.Path(file_okay=False, path_type=Path),
                     help='Directory for the JSON and Markdown reports'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.version_option(version='0.1.0')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress output except errors')
@click.option('--config', '-c', type=click.Path(exists=True, path_type=Path),
              help='Configuration file path')
@click.pass_context
def cli(ctx, verbose: bool, quiet: bool, config: Optional[Path]):
    """ModernizeAI - LLM-assisted modernization analysis."""
    ctx.ensure_object(dict)

    # Setup logging
    setup_logging(verbose, quiet)

    # Load configuration
    try:
        if config:
            ctx.obj['config'] = Config.load_from_file(config)
        else:
            # Try to find config file automatically
            config_file = Config.find_config_file()
            if config_file:
                ctx.obj['config'] = Config.load_from_file(config_file)
            else:
                ctx.obj['config'] = Config.get_default_config()
    except (ConfigError, ValueError, OSError) as e:
        fail(f"Invalid configuration: {e}")

    # Override config with CLI options
    if verbose:
        ctx.obj['config'].output.verbose = True
    if quiet:
        ctx.obj['config'].output.quiet = True


# ----------------------------------------------------------------------
# cve
# ----------------------------------------------------------------------


@cli.command()
@click.argument('path', type=click.Path(path_type=Path))
@_llm_options
@click.option('--nvd-api-key', '-n', help='NVD API key for OWASP Dependency-Check (env: NVD_API_KEY)')
@click.option('--enhanced-mode/--no-enhanced-mode', default=None,
              help='Run OWASP Dependency-Check and LLM enhancement (default: on)')
@click.option('--recursive/--no-recursive', '-r', default=None, help='Recursively scan directories')
@click.pass_context
def cve(ctx, path: Path, **options):
    """Vulnerability scan: heuristics, LLM review and OWASP Dependency-Check."""
    config: Config = ctx.obj['config'].merge_with_cli_args(**options)
    _validate_path(path)
    llm_client = _build_llm_client(config, required=True, purpose="CVE analysis")

    console = ReportConsole(quiet=config.output.quiet)
    console.status("Initializing enhanced CVE analysis...")

    try:
        enhanced_mode = config.dependency_check.enabled
        if enhanced_mode and not _is_java_project(path):
            console.warn("Non-Java project detected. Enhanced OWASP analysis may have limited results.")

        files = _scan_files(config, path, config.scan.cve_extensions)
        console.status(f"Found {len(files)} files to analyze")

        dependency_checker = DependencyCheckAnalyzer(config.dependency_check.model_dump())
        analyzer = CveAnalyzer(
            llm_client,
            dependency_checker=dependency_checker,
            max_llm_files=config.scan.max_llm_files,
            max_llm_enhancements=config.dependency_check.max_llm_enhancements,
        )
        result = analyzer.analyze_project(path if path.is_dir() else path.parent, files,
                                          enhanced_mode=enhanced_mode, progress=console.status)
    except FileScanError as e:
        fail(str(e), config.output.verbose)

    console.success("CVE analysis completed!")
    display_cve_results(console, result, config.output.max_display_items)

    data = {
        'timestamp': datetime.now().isoformat(),
        'analyzed_path': str(path),
        'enhanced_mode': enhanced_mode,
        'analysis': result.model_dump(mode='json'),
        'llm_usage': llm_client.get_usage_stats(),
    }
    _save(console, config, 'cve', data, path)

    if result.dependency_check.report_path:
        console.echo(f"   OWASP Report: {result.dependency_check.report_path}", fg='blue', record=False)


def _is_java_project(path: Path) -> bool:
    return any((path / name).exists() for name in ('pom.xml', 'build.gradle', 'build.gradle.kts'))


def display_cve_results(console: ReportConsole, result: CveAnalysisResult, max_items: int) -> None:
    dependency_check = result.dependency_check
    info = dependency_check.project_info

    console.echo("")
    console.echo("CVE Security Analysis", fg='blue', bold=True)
    console.echo("")
    console.echo("OWASP Dependency Check Results:", fg='cyan')
    console.echo(f"   Scan Date: {info.report_date}", fg='yellow')
    console.echo(f"   Dependencies Scanned: {info.dependencies}", fg='yellow')
    console.echo(f"   Vulnerable Dependencies: {info.vulnerable_dependencies}", fg='yellow')
    console.echo(f"   Scan Success: {'yes' if dependency_check.scan_success else 'no'}", fg='yellow')
    console.echo("")

    console.echo("Risk Assessment:", fg='cyan')
    console.echo(f"   Overall Risk Level: {result.overall_risk_level.value}",
                 fg=SEVERITY_COLORS[result.overall_risk_level])
    console.echo(f"   Immediate Action Required: {'YES' if result.immediate_action_required else 'NO'}",
                 fg='red' if result.immediate_action_required else 'green')
    console.echo("")

    summary = result.summary
    console.echo("Vulnerability Summary:", fg='cyan')
    console.echo(f"   Critical: {summary.critical_count}", fg='red')
    console.echo(f"   High: {summary.high_count}", fg='yellow')
    console.echo(f"   Medium: {summary.medium_count}", fg='blue')
    console.echo(f"   Low: {summary.low_count}", fg='green')
    console.echo(f"   Action Required: {summary.action_required_count}", fg='magenta')
    console.echo("")

    priority = [v for v in result.enhanced_vulnerabilities if v.action_required][:10]
    if priority:
        console.echo("Dependency Vulnerabilities Requiring Action:", fg='cyan')
        console.echo("")
        for index, vuln in enumerate(priority, 1):
            console.echo(f"{index}. {vuln.cve_id} - {vuln.name}", bold=True)
            console.echo(f"   Artifact: {vuln.affected_artifact}", fg='bright_black')
            console.echo(f"   Severity: {vuln.severity.value} (CVSS: {vuln.cvss_score})", fg='bright_black')
            console.echo(f"   Description: {vuln.description[:150]}...", fg='bright_black')
            if vuln.llm_analysis:
                console.echo(f"   Risk: {vuln.llm_analysis.risk_assessment[:100]}", fg='blue')
                console.echo(f"   Priority: {vuln.llm_analysis.remediation_priority}", fg='blue')
                console.echo(f"   Complexity: {vuln.llm_analysis.migration_complexity}", fg='blue')
            console.echo(f"   Recommendation: {vuln.final_recommendation}", fg='green')
            console.echo("")
        remaining = len(result.enhanced_vulnerabilities) - len(priority)
        if remaining > 0:
            console.echo(f"   ... and {remaining} more vulnerabilities (see full report)", fg='bright_black')
            console.echo("")

    vulnerable_reports = [r for r in result.file_reports if r.vulnerabilities]
    console.echo(f"Source Files: {result.vulnerable_files} of {result.total_files} with findings", fg='cyan')
    for report in vulnerable_reports[:max_items]:
        console.echo(f"   {report.file_path}", bold=True)
        for finding in report.vulnerabilities[:3]:
            console.echo(
                f"     - line {finding.line_number}: {finding.type} ({finding.severity.value})",
                fg=SEVERITY_COLORS[finding.severity],
            )
    if len(vulnerable_reports) > max_items:
        console.echo(f"   ... and {len(vulnerable_reports) - max_items} more", fg='bright_black')
    console.echo("")

    if result.strategic_recommendations:
        console.echo("Strategic Recommendations:", fg='cyan')
        for index, recommendation in enumerate(result.strategic_recommendations, 1):
            console.echo(f"{index}. {recommendation}", fg='blue')
        console.echo("")

    plan = result.migration_plan
    if plan and plan.phases:
        console.echo("Security Migration Plan:", fg='cyan')
        console.echo(f"Total Estimated Duration: {plan.total_estimated_duration}", fg='yellow')
        console.echo("")
        for phase in plan.phases:
            console.echo(f"Phase {phase.priority}: {phase.phase}", bold=True)
            console.echo(f"Duration: {phase.estimated_duration}", fg='bright_black')
            for activity in phase.activities:
                console.echo(f"  * {activity}", fg='bright_black')
            console.echo("")


# ----------------------------------------------------------------------
# architect
# ----------------------------------------------------------------------


@cli.command()
@click.argument('path', type=click.Path(path_type=Path))
@_llm_options
@click.option('--source-framework', '-s', type=click.Choice(SOURCE_FRAMEWORKS), default='jboss',
              show_default=True, help='Source framework to migrate from')
@click.option('--target-framework', '-t', type=click.Choice(TARGET_FRAMEWORKS), default='springboot3',
              show_default=True, help='Target framework for migration')
@click.option('--target-java-version', '-j', type=click.Choice(JAVA_VERSIONS), default='21',
              show_default=True, help='Target Java version for migration')
@click.option('--exclude-patterns', '-x', multiple=True, help='Patterns to exclude from packaging')
@click.pass_context
def architect(ctx, path: Path, source_framework: str, target_framework: str,
              target_java_version: str, exclude_patterns: tuple, **options):
    """Plan a migration from a legacy application server to Spring Boot."""
    config: Config = ctx.obj['config'].merge_with_cli_args(
        exclude_patterns=list(exclude_patterns) or None, **options
    )
    _validate_path(path)
    llm_client = _build_llm_client(config, required=True, purpose="architectural analysis")

    console = ReportConsole(quiet=config.output.quiet)
    console.status("Initializing architectural migration analysis...")

    try:
        ast_files = _scan_files(config, path, config.scan.ast_extensions)
    except FileScanError as e:
        fail(str(e), config.output.verbose)

    analyzer = ArchitectAnalyzer(
        llm_client,
        packager=CodebasePackager(config.packaging.model_dump()),
        ast_generator=AstGenerator(),
        prompt_char_limit=config.packaging.prompt_char_limit,
    )
    result = analyzer.analyze_project(
        path, source_framework, target_framework, target_java_version,
        ast_files=ast_files, progress=console.status,
    )

    console.success("Architectural migration analysis completed!")
    if result.architecture.used_fallback:
        console.warn("LLM analysis unavailable; showing the generic migration plan.")
    display_architect_results(console, result, source_framework, target_framework, target_java_version)

    timestamp = datetime.now().isoformat()
    data = {
        'timestamp': timestamp,
        'metadata': {
            'timestamp': timestamp,
            'analyzed_path': str(path),
            'source_framework': source_framework,
            'target_framework': target_framework,
            'target_java_version': target_java_version,
        },
        'packaged_content': {
            'size': result.packaged.size,
            'preview': result.packaged.preview(),
            'packager': result.packaged.packager,
        },
        'architecture_analysis': result.architecture.model_dump(mode='json'),
        'migration_analysis': result.migration.model_dump(mode='json') if result.migration else None,
        'llm_usage': llm_client.get_usage_stats(),
    }
    _save(console, config, 'architect', data, path)


def display_architect_results(console: ReportConsole, result: ArchitectResult, source: str,
                              target: str, java_version: str) -> None:
    analysis = result.architecture

    console.echo("")
    console.echo("Architectural Migration Analysis:", fg='blue', bold=True)
    console.echo("")
    console.echo(f"Source: {source.upper()}", fg='yellow')
    console.echo(f"Target: {target.upper()} with Java {java_version}", fg='yellow')
    console.echo(f"Complexity Score: {analysis.complexity_score:g}/10", fg='yellow')
    console.echo(f"Estimated Effort: {analysis.estimated_effort}", fg='yellow')
    console.echo("")

    if analysis.high_level_steps:
        console.echo("High-Level Migration Steps:", fg='cyan')
        console.echo("")
        for index, step in enumerate(analysis.high_level_steps, 1):
            console.echo(f"{index}. {step.title}", fg='blue')
            console.echo(f"   {step.description}", fg='bright_black')
            if step.effort:
                console.echo(f"   Effort: {step.effort}", fg='yellow')
            console.echo("")

    if analysis.framework_changes:
        console.echo("Framework-Specific Changes:", fg='cyan')
        console.echo("")
        for index, change in enumerate(analysis.framework_changes, 1):
            console.echo(f"{index}. {change.component}: {change.action}", fg='blue')
            console.echo(f"   {change.description}", fg='bright_black')
            if change.before:
                console.echo(f"   Before: {change.before}", fg='red')
            if change.after:
                console.echo(f"   After:  {change.after}", fg='green')
            console.echo("")

    dependencies = analysis.dependency_changes
    if dependencies.remove or dependencies.add or dependencies.update:
        console.echo("Dependency Changes:", fg='cyan')
        for dep in dependencies.remove:
            console.echo(f"  - {dep}", fg='red')
        for dep in dependencies.add:
            console.echo(f"  + {dep}", fg='green')
        for dep in dependencies.update:
            console.echo(f"  ~ {dep}", fg='yellow')
        console.echo("")

    if analysis.code_examples:
        console.echo("Code Transformation Examples:", fg='cyan')
        console.echo("")
        for index, example in enumerate(analysis.code_examples, 1):
            console.echo(f"{index}. {example.description}:", fg='blue')
            console.echo("   Before:", fg='red')
            console.echo(f"   {example.before}", fg='bright_black')
            console.echo("   After:", fg='green')
            console.echo(f"   {example.after}", fg='bright_black')
            console.echo("")

    migration = result.migration
    if migration:
        console.echo("Detailed Migration Plan:", fg='cyan')
        console.echo(f"   Detected Framework: {migration.current_framework}", fg='yellow')
        console.echo(f"   Complexity Score: {migration.complexity_score:g}/10", fg='yellow')
        console.echo(f"   Estimated Effort: {migration.estimated_effort}", fg='yellow')
        for index, step in enumerate(migration.migration_steps, 1):
            hours = f", {step.estimated_hours:g}h" if step.estimated_hours is not None else ""
            console.echo(f"   {index}. [{step.priority}] {step.title} ({step.category}{hours})")
        console.echo("")


# ----------------------------------------------------------------------
# cloud-readiness
# ----------------------------------------------------------------------


@cli.command('cloud-readiness')
@click.argument('path', type=click.Path(path_type=Path))
@_llm_options
@click.option('--cloud-provider', '-p', type=click.Choice([p.value for p in CloudProvider]),
              help='Target cloud provider for assessment')
@click.option('--extensions', '--ext', multiple=True, help='File extensions to analyze')
@click.option('--recursive/--no-recursive', '-r', default=None, help='Recursively scan directories')
@click.pass_context
def cloud_readiness(ctx, path: Path, extensions: tuple, **options):
    """Assess code readiness for cloud deployment."""
    config: Config = ctx.obj['config'].merge_with_cli_args(**options)
    _validate_path(path)
    llm_client = _build_llm_client(config, required=False, purpose="cloud readiness")
    provider = config.cloud_provider.value

    console = ReportConsole(quiet=config.output.quiet)
    console.status("Initializing cloud readiness assessment...")
    if llm_client is None:
        console.warn("No LLM API key configured; using static analysis only.")

    try:
        files = _scan_files(config, path, list(extensions) or config.scan.cloud_extensions)
    except FileScanError as e:
        fail(str(e), config.output.verbose)

    analyzer = CloudReadinessAnalyzer(llm_client, cloud_provider=provider)
    console.status(f"Found {len(files)} files. Assessing cloud readiness...")

    assessments: List[CloudAssessment] = []
    for index, file_path in enumerate(files):
        console.status(f"Assessing {file_path} ({index + 1}/{len(files)})...")
        try:
            content = file_path.read_text(encoding='utf-8', errors='replace')
        except OSError as e:
            logger.warning(f"Skipping {file_path}: {e}")
            continue
        try:
            if index < config.scan.max_llm_files:
                assessments.append(analyzer.assess_file(str(file_path), content))
            else:
                assessments.append(analyzer.combine_assessments(
                    str(file_path), analyzer.static_assessment(content), None
                ))
        except Exception as e:
            logger.warning(f"Assessment failed for {file_path}: {e}")
            continue

    overall_score = analyzer.calculate_overall_readiness(assessments)
    summary = analyzer.summarize(assessments)

    console.success(f"Cloud readiness assessment completed! Overall score: {overall_score:.1f}/10")
    display_cloud_results(console, assessments, overall_score, provider, config.output.max_display_items)

    data = {
        'timestamp': datetime.now().isoformat(),
        'analyzed_path': str(path),
        'cloud_provider': provider,
        'overall_score': overall_score,
        'total_files': len(files),
        'summary': summary.model_dump(),
        'assessments': [a.model_dump(mode='json') for a in assessments],
    }
    if llm_client is not None:
        data['llm_usage'] = llm_client.get_usage_stats()
    _save(console, config, 'cloud-readiness', data, path)


def display_cloud_results(console: ReportConsole, assessments: List[CloudAssessment],
                          overall_score: float, provider: str, max_items: int) -> None:
    console.echo("")
    console.echo("Cloud Readiness Assessment Results:", fg='blue', bold=True)
    console.echo("")
    console.echo(f"Overall Readiness Score: {overall_score:.1f}/10", fg='yellow')
    console.echo(f"Target Cloud Provider: {provider.upper()}", fg='yellow')
    console.echo("")

    high = [a for a in assessments if a.readiness_score >= 8]
    medium = [a for a in assessments if 5 <= a.readiness_score < 8]
    low = [a for a in assessments if a.readiness_score < 5]

    groups = [
        ("High Readiness", high, 'green', 0),
        ("Medium Readiness", medium, 'yellow', 2),
        ("Low Readiness", low, 'red', 3),
    ]
    for title, group, color, issue_count in groups:
        if not group:
            continue
        console.echo(f"{title} ({len(group)} files):", fg=color)
        for assessment in group[:max_items]:
            console.echo(f"   * {assessment.file_path} ({assessment.readiness_score:.1f}/10)", fg=color)
            for issue in assessment.issues[:issue_count]:
                console.echo(f"     - {issue.description}", fg='bright_black')
                if color == 'red' and issue.recommendation:
                    console.echo(f"       Recommendation: {issue.recommendation}", fg='green')
        if len(group) > max_items:
            console.echo(f"   ... and {len(group) - max_items} more", fg='bright_black')
        console.echo("")


# ----------------------------------------------------------------------
# info / init
# ----------------------------------------------------------------------


@cli.command()
@click.argument('path', required=False, type=click.Path(path_type=Path))
@click.pass_context
def info(ctx, path: Optional[Path]):
    """Show configuration, external tool availability and optionally a project summary."""
    config: Config = ctx.obj['config']

    click.echo("ModernizeAI Information")
    click.echo("=" * 40)

    click.echo("\nExternal Tools:")
    availability = DependencyCheckAnalyzer(config.dependency_check.model_dump()).check_availability()
    labels = {
        'maven': 'Maven (dependency-check-maven)',
        'cli': 'dependency-check.sh CLI',
        'docker': 'Docker (owasp/dependency-check)',
    }
    for key, label in labels.items():
        status = "✓" if availability[key] else "✗"
        click.echo(f"  {status} {label}")
    packager = CodebasePackager(config.packaging.model_dump())
    click.echo(f"  {'✓' if packager.is_available() else '✗'} npx (repomix packager)")

    click.echo(f"\nLLM Integration: {'✓ Configured' if config.llm.api_key else '✗ No API key'}")
    click.echo(f"  Provider: {config.llm.provider}")
    click.echo(f"  Endpoint: {config.llm.endpoint}")
    click.echo(f"  Model: {config.llm.model}")

    click.echo(f"\nNVD API key: {'✓ Configured' if config.dependency_check.nvd_api_key else '✗ Not set'}")

    issues = config.validate_config()
    if issues:
        click.echo("\nConfiguration issues:")
        for issue in issues:
            click.secho(f"  - {issue}", fg='yellow')

    if path is not None:
        _validate_path(path)
        extensions = set(config.scan.cve_extensions) | set(config.scan.cloud_extensions) \
            | set(config.scan.ast_extensions)
        try:
            stats = FileScanner(extensions).get_directory_stats(path, config.scan.recursive)
        except (FileScanError, OSError) as e:
            fail(str(e), config.output.verbose)

        click.echo(f"\nProject: {path}")
        click.echo(f"  Source files: {stats['file_count']}")
        click.echo(f"  Total size: {stats['total_size'] / 1024:.1f} KB")
        for ext, count in sorted(stats['extensions'].items()):
            click.echo(f"  {ext}: {count}")


@cli.command()
@click.option('--output', '-o', type=click.Path(path_type=Path),
              default=Path('.modernizeai.yaml'),
              help='Output configuration file path')
@click.pass_context
def init(ctx, output: Path):
    """Initialize a new configuration file."""
    try:
        if output.exists():
            if not click.confirm(f"Configuration file {output} already exists. Overwrite?"):
                click.echo("Cancelled.")
                return

        # Create default configuration
        config = Config.get_default_config()

        # Save to file
        config.save_to_file(output)

        click.echo(f"Configuration file created: {output}")
        click.echo("Set LLM_API_KEY and NVD_API_KEY in the environment or a .env file.")

    except OSError as e:
        fail(str(e))


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
