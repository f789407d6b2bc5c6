"""Tests for configuration loading and validation."""

import pytest

from app.services.config import ConfigService, ConfigValidationException


def write_config(tmp_path, text: str) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return str(path)


class TestLoad:

    def test_missing_file_uses_defaults(self, tmp_path):
        service = ConfigService(str(tmp_path / "absent.yaml"))
        assert service.load_and_validate() == {}
        assert service.get("price_data.cache_ttl_seconds", 10) == 10

    def test_empty_file_is_empty_config(self, tmp_path):
        service = ConfigService(write_config(tmp_path, ""))
        assert service.load_and_validate() == {}

    def test_valid_config(self, tmp_path):
        service = ConfigService(write_config(tmp_path, (
            "price_data:\n"
            "  base_url: https://proxy.local/api/v3\n"
            "  cache_ttl_seconds: 30\n"
            "logging:\n"
            "  level: DEBUG\n"
        )))
        service.load_and_validate()
        assert service.get("price_data.base_url") == "https://proxy.local/api/v3"
        assert service.get("price_data.cache_ttl_seconds") == 30
        assert service.get("logging.level") == "DEBUG"
        assert service.get("logging.format") is None

    def test_env_var_selects_file(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, "server:\n  port: 9000\n")
        monkeypatch.setenv("BTC_PRICE_CONFIG", path)
        service = ConfigService()
        service.load_and_validate()
        assert service.config_path == path
        assert service.get("server.port") == 9000

    def test_invalid_yaml(self, tmp_path):
        service = ConfigService(write_config(tmp_path, "price_data: [unclosed\n"))
        with pytest.raises(ConfigValidationException) as exc_info:
            service.load_and_validate()
        assert "Invalid YAML syntax" in exc_info.value.errors[0].message

    def test_top_level_must_be_mapping(self, tmp_path):
        service = ConfigService(write_config(tmp_path, "- a\n- b\n"))
        with pytest.raises(ConfigValidationException):
            service.load_and_validate()


class TestValidate:

    def setup_method(self):
        self.service = ConfigService("unused.yaml")

    def error_paths(self, config):
        with pytest.raises(ConfigValidationException) as exc_info:
            self.service.validate(config)
        return [e.path for e in exc_info.value.errors]

    def test_unknown_key(self):
        assert self.error_paths({"price_data": {"api_key": "x"}}) == ["price_data.api_key"]

    def test_negative_ttl(self):
        assert self.error_paths({"price_data": {"cache_ttl_seconds": -1}}) == [
            "price_data.cache_ttl_seconds"
        ]

    def test_ttl_accepts_int_and_float(self):
        self.service.validate({"price_data": {"cache_ttl_seconds": 10}})
        self.service.validate({"price_data": {"cache_ttl_seconds": 2.5}})

    def test_bool_is_not_numeric(self):
        assert self.error_paths({"server": {"port": True}}) == ["server.port"]

    def test_port_range(self):
        assert self.error_paths({"server": {"port": 70000}}) == ["server.port"]

    def test_log_level_options(self):
        assert self.error_paths({"logging": {"level": "VERBOSE"}}) == ["logging.level"]

    def test_section_must_be_dict(self):
        assert self.error_paths({"price_data": "https://x"}) == ["price_data"]

    def test_collects_all_errors(self):
        paths = self.error_paths({
            "server": {"port": 0},
            "logging": {"level": "LOUD"},
            "extra": 1,
        })
        assert sorted(paths) == ["extra", "logging.level", "server.port"]
