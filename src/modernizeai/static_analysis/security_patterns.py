"""Regex heuristics for common vulnerability patterns in source files."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Pattern, Union

from ..core.models import VulnerabilityFinding, Severity, FindingSource


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SecurityPattern:
    """A line-level regex rule."""
    type: str
    severity: Severity
    regex: Pattern
    description: str
    recommendation: str


def _rule(type_: str, severity: Severity, pattern: str, description: str, recommendation: str) -> SecurityPattern:
    return SecurityPattern(type_, severity, re.compile(pattern, re.IGNORECASE), description, recommendation)


SECURITY_PATTERNS: List[SecurityPattern] = [
    _rule(
        "Hardcoded Secret", Severity.HIGH,
        r'''\b(password|passwd|pwd|secret|api[_-]?key|access[_-]?token|auth[_-]?token|private[_-]?key)\w*\s*[:=]\s*["'][^"']{4,}["']''',
        "Credential or secret appears to be hardcoded in source",
        "Load secrets from environment variables or a secrets manager",
    ),
    _rule(
        "SQL Injection", Severity.HIGH,
        r'''\b(select|insert|update|delete)\b.*\b(from|into|set|where)\b.*["']\s*(\+|%|\.format\()'''
        r'''|\bf"(select|insert|update|delete)\b[^"\n]*\{|\bf'(select|insert|update|delete)\b[^'\n]*\{'''
        r'''|`[^`]*\b(select|insert|update|delete)\b[^`]*\$\{''',
        "SQL statement built by string concatenation or interpolation",
        "Use parameterized queries or prepared statements",
    ),
    _rule(
        "Command Injection", Severity.HIGH,
        r'''\b(os\.system|os\.popen|subprocess\.\w+\([^)]*shell\s*=\s*True|Runtime\.getRuntime\(\)\.exec|child_process\.exec|exec\.Command|shell_exec|passthru)\s*\(?''',
        "External command executed in a way that may allow injection",
        "Avoid shell execution; pass arguments as a list and validate input",
    ),
    _rule(
        "Code Injection", Severity.HIGH,
        r'''(?<![\w.])eval\s*\(|new\s+Function\s*\(''',
        "Dynamic code evaluation",
        "Remove eval; parse data with a safe parser instead",
    ),
    _rule(
        "Insecure Transport", Severity.MEDIUM,
        r'''["']http://(?!localhost|127\.0\.0\.1|0\.0\.0\.0)[^"'\s]+["']''',
        "Plain HTTP URL used for communication",
        "Use HTTPS for all external communications",
    ),
    _rule(
        "Weak Cryptography", Severity.MEDIUM,
        r'''\b(md5|sha1)\b\s*\(|MessageDigest\.getInstance\(\s*["'](MD5|SHA-?1)["']|createHash\(\s*["'](md5|sha1)["']|Cipher\.getInstance\(\s*["']DES["/']|Cipher\.getInstance\(\s*["'][^"']*ECB''',
        "Weak hash or cipher algorithm",
        "Use SHA-256 or stronger hashes and authenticated encryption such as AES-GCM",
    ),
    _rule(
        "Insecure Deserialization", Severity.HIGH,
        r'''\bpickle\.loads?\s*\(|\byaml\.load\s*\((?![^)]*Loader\s*=\s*yaml\.SafeLoader)|ObjectInputStream\s*\(|\bunserialize\s*\(|BinaryFormatter''',
        "Deserialization of potentially untrusted data",
        "Deserialize only trusted data and prefer safe formats like JSON",
    ),
    _rule(
        "Disabled TLS Verification", Severity.HIGH,
        r'''verify\s*=\s*False|rejectUnauthorized\s*:\s*false|InsecureSkipVerify\s*:\s*true|NODE_TLS_REJECT_UNAUTHORIZED|TrustAllCerts|NoopHostnameVerifier''',
        "TLS certificate verification is disabled",
        "Keep certificate verification enabled and trust a proper CA bundle",
    ),
    _rule(
        "Sensitive Data Logging", Severity.LOW,
        r'''(console\.log|logger\.\w+|logging\.\w+|log\.\w+|System\.out\.println|print)\s*\([^)]*\b(password|passwd|secret|token|api[_-]?key|ssn|credit[_-]?card)''',
        "Sensitive value may be written to logs",
        "Avoid logging sensitive information or mask it first",
    ),
]


def scan_content(content: str, patterns: List[SecurityPattern] = SECURITY_PATTERNS) -> List[VulnerabilityFinding]:
    """Run every rule over every line; one finding per (line, rule)."""
    findings = []
    for line_number, line in enumerate(content.splitlines(), 1):
        for pattern in patterns:
            if pattern.regex.search(line):
                findings.append(VulnerabilityFinding(
                    type=pattern.type,
                    severity=pattern.severity,
                    line_number=line_number,
                    description=pattern.description,
                    recommendation=pattern.recommendation,
                    source=FindingSource.HEURISTIC,
                ))
    return findings


def scan_file(file_path: Union[str, Path]) -> List[VulnerabilityFinding]:
    """Heuristic findings for one file; unreadable files yield none."""
    try:
        content = Path(file_path).read_text(encoding='utf-8', errors='replace')
    except OSError as e:
        logger.warning(f"Cannot read {file_path}: {e}")
        return []
    return scan_content(content)
