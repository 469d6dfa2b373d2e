"""Configuration management for ModernizeAI."""

import os
import yaml
from pathlib import Path
from typing import Dict, List, Optional, Any
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv

from .models import CloudProvider


DEFAULT_LLM_ENDPOINT = "https://api.openai.com/v1"
DEFAULT_LLM_MODEL = "gpt-4o"


class ConfigError(Exception):
    """Raised when configuration cannot be loaded."""
    pass


class LLMConfig(BaseModel):
    """Configuration for the LLM service."""

    # Provider settings
    provider: str = "openai"
    model: Optional[str] = Field(default=None, validate_default=True)
    api_key: Optional[str] = Field(default=None, validate_default=True)
    endpoint: Optional[str] = Field(default=None, validate_default=True)

    # Request configuration
    max_tokens: int = 2000
    temperature: float = 0.1
    timeout_seconds: int = 30
    max_retries: int = 3
    context_window: int = 128000

    @field_validator('provider')
    @classmethod
    def validate_provider(cls, v):
        if v not in ('openai', 'groq'):
            raise ValueError("provider must be 'openai' or 'groq'")
        return v

    @field_validator('model')
    @classmethod
    def load_model(cls, v):
        if v is None:
            return os.getenv('LLM_MODEL') or DEFAULT_LLM_MODEL
        return v

    @field_validator('api_key')
    @classmethod
    def load_api_key(cls, v):
        """Load API key from environment if not provided."""
        if v is None:
            return os.getenv('LLM_API_KEY')
        return v

    @field_validator('endpoint')
    @classmethod
    def load_endpoint(cls, v):
        if v is None:
            return os.getenv('LLM_ENDPOINT') or DEFAULT_LLM_ENDPOINT
        return v


class ScanConfig(BaseModel):
    """Configuration for file discovery."""

    cve_extensions: List[str] = Field(
        default_factory=lambda: [".js", ".ts", ".jsx", ".tsx", ".py", ".java", ".go", ".php", ".rb", ".cs"]
    )
    cloud_extensions: List[str] = Field(
        default_factory=lambda: [".js", ".ts", ".jsx", ".tsx", ".py", ".java", ".go", ".rs"]
    )
    ast_extensions: List[str] = Field(
        default_factory=lambda: [".java", ".xml", ".properties", ".yml", ".yaml", ".js", ".ts", ".py"]
    )
    recursive: bool = True
    max_file_size_mb: int = 1
    max_llm_files: int = 50


class DependencyCheckConfig(BaseModel):
    """Configuration for the OWASP dependency-check integration."""

    enabled: bool = True
    nvd_api_key: Optional[str] = Field(default=None, validate_default=True)
    timeout_seconds: int = 300
    docker_image: str = "owasp/dependency-check:latest"
    max_llm_enhancements: int = 10

    @field_validator('nvd_api_key')
    @classmethod
    def load_nvd_api_key(cls, v):
        if v is None:
            return os.getenv('NVD_API_KEY')
        return v


class PackagingConfig(BaseModel):
    """Configuration for codebase packaging."""

    exclude_patterns: List[str] = Field(
        default_factory=lambda: ["node_modules", ".git", "target", "build", "*.class"]
    )
    max_files: int = 100
    prompt_char_limit: int = 15000
    timeout_seconds: int = 120


class OutputConfig(BaseModel):
    """Configuration for report output."""

    output_dir: Path = Field(default_factory=Path.cwd)
    verbose: bool = False
    quiet: bool = False
    max_display_items: int = 5


class Config(BaseModel):
    """Main configuration class for ModernizeAI."""

    # Sub-configurations
    llm: LLMConfig = Field(default_factory=LLMConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    dependency_check: DependencyCheckConfig = Field(default_factory=DependencyCheckConfig)
    packaging: PackagingConfig = Field(default_factory=PackagingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    # Global settings
    log_level: str = "WARNING"
    cloud_provider: CloudProvider = CloudProvider.GENERIC

    @classmethod
    def load_from_file(cls, config_path: Path) -> "Config":
        """Load configuration from a YAML file or a pyproject.toml."""
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.name == "pyproject.toml":
            return cls.load_from_pyproject(config_path)

        load_dotenv()
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ConfigError(f"Configuration file must contain a mapping: {config_path}")

        return cls(**config_data)

    @classmethod
    def load_from_dict(cls, config_dict: Dict[str, Any]) -> "Config":
        """Load configuration from dictionary."""
        return cls(**config_dict)

    @classmethod
    def get_default_config(cls) -> "Config":
        """Get default configuration."""
        # Load environment variables
        load_dotenv()
        return cls()

    @classmethod
    def find_config_file(cls, start_path: Optional[Path] = None) -> Optional[Path]:
        """Find configuration file in current directory or parent directories."""
        if start_path is None:
            start_path = Path.cwd()

        config_names = [
            ".modernizeai.yaml",
            ".modernizeai.yml",
            "modernizeai.yaml",
            "modernizeai.yml",
            "pyproject.toml"  # Look for [tool.modernizeai] section
        ]

        current_path = start_path.resolve()

        # Search up the directory tree
        while current_path != current_path.parent:
            for config_name in config_names:
                config_file = current_path / config_name
                if config_file.exists():
                    if config_name == "pyproject.toml":
                        if cls._has_modernizeai_config(config_file):
                            return config_file
                    else:
                        return config_file
            current_path = current_path.parent

        return None

    @classmethod
    def _has_modernizeai_config(cls, pyproject_path: Path) -> bool:
        """Check if pyproject.toml has a [tool.modernizeai] section."""
        import tomllib

        try:
            with open(pyproject_path, 'rb') as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            return False
        return "modernizeai" in data.get("tool", {})

    @classmethod
    def load_from_pyproject(cls, pyproject_path: Path) -> "Config":
        """Load configuration from pyproject.toml file."""
        import tomllib

        with open(pyproject_path, 'rb') as f:
            data = tomllib.load(f)

        if "modernizeai" not in data.get("tool", {}):
            raise ConfigError("No [tool.modernizeai] section found in pyproject.toml")

        load_dotenv()
        return cls(**data["tool"]["modernizeai"])

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        # Never write secrets to disk
        config_dict = self.model_dump(mode='json', exclude={'llm': {'api_key'}, 'dependency_check': {'nvd_api_key'}})
        config_dict['output'].pop('output_dir', None)

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config_dict, f, default_flow_style=False, indent=2, sort_keys=False)

    def validate_config(self) -> List[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if not self.llm.api_key:
            issues.append("LLM API key not configured")

        if not self.llm.endpoint or not self.llm.endpoint.startswith(("http://", "https://")):
            issues.append(f"LLM endpoint is not a valid URL: {self.llm.endpoint}")

        if self.llm.timeout_seconds <= 0:
            issues.append("LLM timeout must be positive")

        if self.scan.max_file_size_mb <= 0:
            issues.append("Max file size must be positive")

        if self.dependency_check.timeout_seconds <= 0:
            issues.append("Dependency check timeout must be positive")

        if not self.output.output_dir.exists():
            issues.append(f"Output directory does not exist: {self.output.output_dir}")

        return issues

    def merge_with_cli_args(self, **cli_args) -> "Config":
        """Merge configuration with CLI arguments."""
        config_dict = self.model_dump()

        # Map CLI arguments to config structure
        cli_mapping = {
            'verbose': 'output.verbose',
            'quiet': 'output.quiet',
            'output_dir': 'output.output_dir',
            'llm_endpoint': 'llm.endpoint',
            'llm_api_key': 'llm.api_key',
            'llm_model': 'llm.model',
            'llm_provider': 'llm.provider',
            'nvd_api_key': 'dependency_check.nvd_api_key',
            'enhanced_mode': 'dependency_check.enabled',
            'recursive': 'scan.recursive',
            'cloud_provider': 'cloud_provider',
            'exclude_patterns': 'packaging.exclude_patterns',
        }

        for cli_key, cli_value in cli_args.items():
            if cli_value is not None and cli_key in cli_mapping:
                config_path = cli_mapping[cli_key].split('.')
                current = config_dict

                # Navigate to the right location in config dict
                for path_part in config_path[:-1]:
                    current = current[path_part]

                current[config_path[-1]] = cli_value

        return Config(**config_dict)
