"""Tests for config.py — YAML and environment configuration."""

from dashlens.config import find_config_path, load_config


class TestLoadConfig:
    def test_defaults_without_file(self, monkeypatch):
        monkeypatch.delenv("METABASE_URL", raising=False)
        monkeypatch.delenv("METABASE_API_KEY", raising=False)
        cfg = load_config(None)
        assert cfg.metabase.url == ""
        assert cfg.resolver.max_workers == 8
        assert cfg.log_level == "INFO"

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("METABASE_URL", "https://mb.example.com")
        monkeypatch.setenv("METABASE_API_KEY", "mb_key")
        cfg = load_config(None)
        assert cfg.metabase.url == "https://mb.example.com"
        assert cfg.metabase.api_key == "mb_key"

    def test_missing_path_returns_defaults(self, tmp_path):
        cfg = load_config(tmp_path / "missing.yml")
        assert cfg.resolver.max_workers == 8

    def test_yaml_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_MB_KEY", "secret")
        path = tmp_path / "dashlens.yml"
        path.write_text(
            "metabase:\n"
            "  url: https://mb.example.com/\n"
            "  api_key: $TEST_MB_KEY\n"
            "  timeout: 5\n"
            "resolver:\n"
            "  max_workers: 3\n"
            "log_level: debug\n"
        )
        cfg = load_config(path)
        assert cfg.metabase.url == "https://mb.example.com"
        assert cfg.metabase.api_key == "secret"
        assert cfg.metabase.timeout == 5.0
        assert cfg.resolver.max_workers == 3
        assert cfg.log_level == "DEBUG"

    def test_max_workers_at_least_one(self, tmp_path):
        path = tmp_path / "dashlens.yml"
        path.write_text("resolver:\n  max_workers: 0\n")
        assert load_config(path).resolver.max_workers == 1

    def test_empty_file(self, tmp_path):
        path = tmp_path / "dashlens.yml"
        path.write_text("")
        assert load_config(path).log_level == "INFO"


class TestFindConfigPath:
    def test_env_var_wins(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yml"
        path.write_text("log_level: INFO\n")
        monkeypatch.setenv("DASHLENS_CONFIG", str(path))
        assert find_config_path() == path

    def test_cwd_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DASHLENS_CONFIG", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        monkeypatch.chdir(tmp_path)
        (tmp_path / "dashlens.yml").write_text("")
        assert find_config_path() == tmp_path / "dashlens.yml"

    def test_missing_override_falls_through(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DASHLENS_CONFIG", str(tmp_path / "absent.yml"))
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        monkeypatch.chdir(tmp_path)
        (tmp_path / "dashlens.yml").write_text("")
        assert find_config_path() == tmp_path / "dashlens.yml"

    def test_nothing_found(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DASHLENS_CONFIG", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        monkeypatch.chdir(tmp_path)
        assert find_config_path() is None
