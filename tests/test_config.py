"""
Config Tests
============
Defaults, YAML loading, validation and CODE_SCORE_* environment overrides.
"""

from textwrap import dedent

import pytest

from code_score.core.config import ScoreConfig, load_config
from code_score.errors import ConfigurationError


def write_config(root, text, name=".code-score.yaml"):
    path = root / name
    path.write_text(dedent(text).lstrip("\n"), encoding="utf-8")
    return path


class TestDefaults:
    def test_defaults(self):
        config = ScoreConfig()
        assert config.analyzer_timeout == 300.0
        assert config.timeout == 300.0
        assert config.max_workers == 7
        assert config.external_tools is True
        assert config.recommendation_limit == 10

    def test_zero_timeout_is_unlimited(self):
        assert ScoreConfig(analyzer_timeout=0).timeout is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"analyzer_timeout": -1},
            {"tool_timeout": 0},
            {"max_workers": 0},
            {"sample_limit": 0},
            {"recommendation_limit": -1},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigurationError):
            ScoreConfig(**kwargs)


class TestYaml:
    def test_discover_reads_project_file(self, tmp_path):
        write_config(
            tmp_path,
            """
            analyzer_timeout: 60
            external_tools: false
            exclude_dirs: [generated, fixtures]
            categories: structure, testing
            """,
        )
        config = ScoreConfig.discover(tmp_path)
        assert config.analyzer_timeout == 60.0
        assert config.external_tools is False
        assert config.exclude_dirs == ("generated", "fixtures")
        assert config.categories == ("structure", "testing")

    def test_discover_without_file(self, tmp_path):
        assert ScoreConfig.discover(tmp_path) == ScoreConfig()

    def test_empty_file(self, tmp_path):
        assert ScoreConfig.from_yaml(write_config(tmp_path, "")) == ScoreConfig()

    def test_unknown_key(self, tmp_path):
        path = write_config(tmp_path, "colour: blue\n")
        with pytest.raises(ConfigurationError, match="unknown key"):
            ScoreConfig.from_yaml(path)

    def test_bad_value(self, tmp_path):
        path = write_config(tmp_path, "max_workers: lots\n")
        with pytest.raises(ConfigurationError, match="invalid value for max_workers"):
            ScoreConfig.from_yaml(path)

    def test_boolean_is_not_a_number(self):
        with pytest.raises(ConfigurationError):
            ScoreConfig.from_mapping({"tool_timeout": True})

    def test_invalid_yaml(self, tmp_path):
        path = write_config(tmp_path, "a: [unclosed\n")
        with pytest.raises(ConfigurationError, match="invalid YAML"):
            ScoreConfig.from_yaml(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = write_config(tmp_path, "- 1\n- 2\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            ScoreConfig.from_yaml(path)

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="cannot read"):
            ScoreConfig.from_yaml(tmp_path / "nope.yaml")


class TestEnvironment:
    def test_overrides(self):
        config = ScoreConfig().with_env(
            {"CODE_SCORE_ANALYZER_TIMEOUT": "12.5", "CODE_SCORE_MAX_WORKERS": "2", "CODE_SCORE_NO_TOOLS": "1"}
        )
        assert config.analyzer_timeout == 12.5
        assert config.max_workers == 2
        assert config.external_tools is False

    def test_no_tools_zero_keeps_tools(self):
        assert ScoreConfig().with_env({"CODE_SCORE_NO_TOOLS": "0"}).external_tools is True

    def test_empty_environment_is_identity(self):
        config = ScoreConfig(tool_timeout=5)
        assert config.with_env({}) is config

    def test_bad_env_value(self):
        with pytest.raises(ConfigurationError, match="CODE_SCORE_TOOL_TIMEOUT"):
            ScoreConfig().with_env({"CODE_SCORE_TOOL_TIMEOUT": "soon"})

    def test_load_config_precedence(self, tmp_path):
        """Environment beats the file, the file beats the defaults."""
        write_config(tmp_path, "analyzer_timeout: 60\ntool_timeout: 10\n")
        config = load_config(tmp_path, environ={"CODE_SCORE_ANALYZER_TIMEOUT": "5"})
        assert config.analyzer_timeout == 5.0
        assert config.tool_timeout == 10.0

    def test_load_config_explicit_path(self, tmp_path):
        path = write_config(tmp_path, "recommendation_limit: 3\n", name="custom.yaml")
        assert load_config(tmp_path, path, environ={}).recommendation_limit == 3
