"""Test configuration management."""

import pytest
from pathlib import Path

from modernizeai.core.config import (
    Config, ConfigError, LLMConfig, ScanConfig, DEFAULT_LLM_ENDPOINT, DEFAULT_LLM_MODEL,
)
from modernizeai.core.models import CloudProvider


class TestConfig:
    """Test configuration management."""

    def test_default_config_creation(self, clean_env):
        """Test creating default configuration."""
        config = Config.get_default_config()

        assert isinstance(config.llm, LLMConfig)
        assert isinstance(config.scan, ScanConfig)
        assert config.llm.api_key is None
        assert config.llm.endpoint == DEFAULT_LLM_ENDPOINT
        assert config.llm.model == DEFAULT_LLM_MODEL
        assert config.dependency_check.nvd_api_key is None
        assert config.dependency_check.enabled is True
        assert config.cloud_provider == CloudProvider.GENERIC

    def test_environment_fallbacks(self, clean_env, monkeypatch):
        """LLM and NVD settings come from the environment when not given."""
        monkeypatch.setenv('LLM_API_KEY', 'env-key')
        monkeypatch.setenv('LLM_ENDPOINT', 'https://llm.example.com/v1')
        monkeypatch.setenv('LLM_MODEL', 'llama-3.1-70b')
        monkeypatch.setenv('NVD_API_KEY', 'nvd-key')

        config = Config.get_default_config()

        assert config.llm.api_key == 'env-key'
        assert config.llm.endpoint == 'https://llm.example.com/v1'
        assert config.llm.model == 'llama-3.1-70b'
        assert config.dependency_check.nvd_api_key == 'nvd-key'

    def test_config_from_dict(self, clean_env):
        """Test creating config from dictionary."""
        config_dict = {
            'llm': {
                'model': 'test-model',
                'max_tokens': 2048,
            },
            'scan': {
                'recursive': False,
            },
            'cloud_provider': 'aws',
        }

        config = Config.load_from_dict(config_dict)

        assert config.llm.model == 'test-model'
        assert config.llm.max_tokens == 2048
        assert config.scan.recursive is False
        assert config.cloud_provider == CloudProvider.AWS

    def test_invalid_provider_rejected(self, clean_env):
        with pytest.raises(ValueError):
            Config.load_from_dict({'llm': {'provider': 'anthropic'}})

    def test_config_save_and_load(self, temp_dir, clean_env, monkeypatch):
        """Test saving and loading configuration."""
        monkeypatch.setenv('LLM_API_KEY', 'do-not-persist')
        config = Config.get_default_config()
        config.llm.model = 'test-model'
        config.scan.max_llm_files = 7

        config_file = temp_dir / 'test_config.yaml'
        config.save_to_file(config_file)

        assert config_file.exists()
        assert 'do-not-persist' not in config_file.read_text()

        # Load and verify
        loaded_config = Config.load_from_file(config_file)
        assert loaded_config.llm.model == 'test-model'
        assert loaded_config.scan.max_llm_files == 7

    def test_load_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            Config.load_from_file(temp_dir / 'missing.yaml')

    def test_load_non_mapping_file(self, temp_dir, clean_env):
        config_file = temp_dir / 'bad.yaml'
        config_file.write_text('- just\n- a list\n')

        with pytest.raises(ConfigError):
            Config.load_from_file(config_file)

    def test_load_from_pyproject(self, temp_dir, clean_env):
        pyproject = temp_dir / 'pyproject.toml'
        pyproject.write_text('[tool.modernizeai]\ncloud_provider = "gcp"\n\n[tool.modernizeai.llm]\nmodel = "m"\n')

        config = Config.load_from_file(pyproject)

        assert config.cloud_provider == CloudProvider.GCP
        assert config.llm.model == 'm'

    def test_find_config_file(self, temp_dir):
        nested = temp_dir / 'a' / 'b'
        nested.mkdir(parents=True)
        config_file = temp_dir / '.modernizeai.yaml'
        config_file.write_text('scan:\n  recursive: true\n')

        assert Config.find_config_file(nested) == config_file.resolve()

    def test_find_config_ignores_unrelated_pyproject(self, temp_dir):
        (temp_dir / 'pyproject.toml').write_text('[project]\nname = "x"\n')
        found = Config.find_config_file(temp_dir)
        assert found is None or found.parent != temp_dir.resolve()

    def test_config_validation(self, clean_env):
        """Test configuration validation."""
        config = Config.get_default_config()

        issues = config.validate_config()
        assert any('API key' in issue for issue in issues)

        config.llm.endpoint = 'not-a-url'
        config.dependency_check.timeout_seconds = 0
        issues = config.validate_config()
        assert any('not a valid URL' in issue for issue in issues)
        assert any('Dependency check timeout' in issue for issue in issues)

    def test_merge_with_cli_args(self, clean_env):
        """Test merging config with CLI arguments."""
        config = Config.get_default_config()

        # Test merging
        merged = config.merge_with_cli_args(
            verbose=True,
            llm_api_key='cli-key',
            llm_model='cli-model',
            nvd_api_key='cli-nvd',
            enhanced_mode=False,
            cloud_provider='atlas',
            output_dir=Path('/tmp/reports'),
            exclude_patterns=['*.log'],
            unknown_option='ignored',
            llm_endpoint=None,
        )

        assert merged.output.verbose is True
        assert merged.llm.api_key == 'cli-key'
        assert merged.llm.model == 'cli-model'
        assert merged.llm.endpoint == DEFAULT_LLM_ENDPOINT
        assert merged.dependency_check.nvd_api_key == 'cli-nvd'
        assert merged.dependency_check.enabled is False
        assert merged.cloud_provider == CloudProvider.ATLAS
        assert merged.output.output_dir == Path('/tmp/reports')
        assert merged.packaging.exclude_patterns == ['*.log']

        # Original untouched
        assert config.llm.api_key is None
