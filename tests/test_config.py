"""Tests for configuration loading."""

import pytest

from macaron_extract.config import (
    CONFIG_ENV_VAR,
    DEFAULT_EXTRACTION_APIS,
    ExtractionConfig,
    config_from_dict,
    find_config_yaml,
    load_config,
)


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)


class TestConfigFromDict:
    """Tests for config_from_dict."""

    def test_defaults(self) -> None:
        cfg = config_from_dict(None)
        assert cfg.source_module == "macaron"
        assert cfg.apis == list(DEFAULT_EXTRACTION_APIS)
        assert cfg.tree_shake
        assert cfg.prune_relocated
        assert cfg.package is None

    def test_overrides(self) -> None:
        cfg = config_from_dict({
            "source_module": "design.css",
            "apis": ["style"],
            "identifier_prefix": "css",
            "package": ".",
            "tree_shake": False,
        })
        assert cfg.source_module == "design.css"
        assert cfg.apis == ["style"]
        assert cfg.identifier_prefix == "css"
        assert cfg.package == "."
        assert not cfg.tree_shake

    @pytest.mark.parametrize("data", [
        {"apis": "style"},
        {"apis": ["style", 3]},
        {"tree_shake": "yes"},
        {"source_module": None},
    ])
    def test_bad_types(self, data) -> None:
        with pytest.raises(ValueError):
            config_from_dict(data)

    def test_to_dict(self) -> None:
        d = ExtractionConfig(module_suffix="css").to_dict()
        assert d["module_suffix"] == "css"
        assert d["source_module"] == "macaron"


class TestLoadConfig:
    """Tests for load_config and config discovery."""

    def test_no_config_found(self) -> None:
        assert find_config_yaml() is None
        assert load_config() == ExtractionConfig()

    def test_explicit_path(self, tmp_path) -> None:
        path = tmp_path / "custom.yaml"
        path.write_text("extraction:\n  source_module: styles\n  apis: [style]\n", encoding="utf-8")
        cfg = load_config(str(path))
        assert cfg.source_module == "styles"
        assert cfg.apis == ["style"]

    def test_cwd_file(self, tmp_path) -> None:
        (tmp_path / "macaron.yaml").write_text("extraction:\n  module_suffix: css\n", encoding="utf-8")
        assert find_config_yaml() == "macaron.yaml"
        assert load_config().module_suffix == "css"

    def test_env_var(self, tmp_path, monkeypatch) -> None:
        path = tmp_path / "env.yaml"
        path.write_text("extraction:\n  identifier_prefix: env\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_config().identifier_prefix == "env"

    def test_missing_explicit_path(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_top_level_must_be_mapping(self, tmp_path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(str(path))

    def test_empty_file_gives_defaults(self, tmp_path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)) == ExtractionConfig()
