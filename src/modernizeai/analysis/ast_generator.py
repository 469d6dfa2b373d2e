"""Superficial syntax summaries of source files."""

import importlib
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Any, Tuple

from tree_sitter import Language, Parser, Node

from ..core.models import FileAst, AstMetadata


logger = logging.getLogger(__name__)


LANGUAGE_MAP = {
    '.js': 'javascript',
    '.jsx': 'jsx',
    '.ts': 'typescript',
    '.tsx': 'tsx',
    '.py': 'python',
    '.java': 'java',
    '.cpp': 'cpp',
    '.c': 'c',
    '.cs': 'csharp',
    '.go': 'go',
    '.rs': 'rust',
    '.php': 'php',
    '.rb': 'ruby',
    '.xml': 'xml',
    '.properties': 'properties',
    '.yml': 'yaml',
    '.yaml': 'yaml',
}

# language -> (binding module, attribute holding the language capsule)
LANGUAGE_BINDINGS: Dict[str, Tuple[str, str]] = {
    'python': ('tree_sitter_python', 'language'),
    'javascript': ('tree_sitter_javascript', 'language'),
    'jsx': ('tree_sitter_javascript', 'language'),
    'typescript': ('tree_sitter_typescript', 'language_typescript'),
    'tsx': ('tree_sitter_typescript', 'language_tsx'),
    'java': ('tree_sitter_java', 'language'),
    'go': ('tree_sitter_go', 'language'),
}

FUNCTION_NODES = {
    'function_definition',
    'function_declaration', 'function_expression', 'function', 'arrow_function',
    'generator_function_declaration',
    'method_definition', 'method_declaration', 'constructor_declaration',
    'func_literal',
}
CLASS_NODES = {
    'class_definition',
    'class_declaration', 'class',
    'interface_declaration', 'enum_declaration', 'record_declaration',
    'type_declaration',
}
IMPORT_NODES = {
    'import_statement', 'import_from_statement',
    'import_declaration',
}
EXPORT_NODES = {'export_statement'}

# Checked in order across all files rather than first match per file;
# plain javax.* alone is not a Spring Boot marker
FRAMEWORK_INDICATORS: Dict[str, List[str]] = {
    'Spring Boot 2': ['@SpringBootApplication', 'spring-boot-starter'],
    'Spring Boot 1': ['@EnableAutoConfiguration', 'spring-boot-1'],
    'Spring MVC': ['@Controller', '@RestController', 'spring-webmvc'],
    'Jakarta EE': ['jakarta.servlet', 'jakarta.persistence'],
    'Java EE': ['javax.servlet', 'javax.persistence', 'javax.ejb', 'javax.inject'],
}

_REGEX_COUNTERS = {
    'functions': [r'function\s+\w+', r'def\s+\w+', r'\w+\s*\([^)]*\)\s*\{'],
    'classes': [r'class\s+\w+', r'struct\s+\w+', r'interface\s+\w+'],
    'imports': [r'import\s+', r'#include\s+', r'require\s*\(', r'from\s+[\'"][\w./]+[\'"]'],
}


def detect_language(file_path: str) -> str:
    return LANGUAGE_MAP.get(Path(file_path).suffix.lower(), 'unknown')


def find_indicators(content: str) -> List[str]:
    """Framework markers that occur verbatim in ``content``."""
    found = []
    for markers in FRAMEWORK_INDICATORS.values():
        for marker in markers:
            if marker in content and marker not in found:
                found.append(marker)
    return found


class AstGenerator:
    """Counts functions, classes, imports and exports per file.

    Uses tree-sitter where a grammar is installed and regex counting for
    everything else.
    """

    def __init__(self):
        self._parsers: Dict[str, Optional[Parser]] = {}

    def _get_parser(self, language: str) -> Optional[Parser]:
        if language in self._parsers:
            return self._parsers[language]

        parser = None
        binding = LANGUAGE_BINDINGS.get(language)
        if binding:
            module_name, attribute = binding
            try:
                module = importlib.import_module(module_name)
                parser = Parser(Language(getattr(module, attribute)()))
                logger.debug(f"Tree-sitter parser initialized for {language}")
            except (ImportError, AttributeError, TypeError, ValueError) as e:
                logger.warning(f"Tree-sitter grammar for {language} unavailable, using regex counting: {e}")
                parser = None

        self._parsers[language] = parser
        return parser

    def generate_ast(self, file_path: str, content: str, include_metadata: bool = True) -> FileAst:
        language = detect_language(file_path)
        parser = self._get_parser(language)

        if parser is not None:
            tree = parser.parse(content.encode('utf-8'))
            counts, node_count = self._count_tree(tree.root_node)
            parser_name = "tree-sitter"
        else:
            counts = self._count_regex(content)
            node_count = len(content.split('\n'))
            parser_name = "text"

        metadata = None
        if include_metadata:
            metadata = AstMetadata(
                size=len(content),
                lines=len(content.split('\n')),
                **counts,
            )

        return FileAst(
            file_path=str(file_path),
            language=language,
            node_count=node_count,
            parser=parser_name,
            metadata=metadata,
            indicators=find_indicators(content),
        )

    def generate_for_file(self, file_path: Path) -> Optional[FileAst]:
        """Read and summarize one file; unreadable files are skipped."""
        try:
            content = Path(file_path).read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to parse {file_path}: {e}")
            return None
        return self.generate_ast(str(file_path), content)

    def generate_for_files(self, files: List[Path]) -> List[FileAst]:
        asts = []
        for file_path in files:
            ast = self.generate_for_file(file_path)
            if ast is not None:
                asts.append(ast)
        return asts

    @staticmethod
    def _count_tree(root: Node) -> Tuple[Dict[str, int], int]:
        counts = {'functions': 0, 'classes': 0, 'imports': 0, 'exports': 0}
        node_count = 0

        stack = [root]
        while stack:
            node = stack.pop()
            node_count += 1
            node_type = node.type
            if node_type in FUNCTION_NODES:
                counts['functions'] += 1
            elif node_type in CLASS_NODES:
                counts['classes'] += 1
            elif node_type in IMPORT_NODES:
                counts['imports'] += 1
            elif node_type in EXPORT_NODES:
                counts['exports'] += 1
            stack.extend(node.children)

        return counts, node_count

    @staticmethod
    def _count_regex(content: str) -> Dict[str, Any]:
        counts: Dict[str, Any] = {'exports': 0}
        for name, patterns in _REGEX_COUNTERS.items():
            counts[name] = sum(len(re.findall(pattern, content)) for pattern in patterns)
        return counts
