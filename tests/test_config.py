"""
Tests for configuration loading
===============================

Run with: pytest tests/test_config.py -v
"""

import json

import yaml

from vin_verify.config import VerifyConfig, get_config, load_config, reset_config, set_config
from vin_verify.session import VerificationSession


class TestDefaults:
    """Tests for default values and environment overrides."""
    
    def test_defaults(self, config):
        assert config.parser.preamble_lines == 2
        assert config.matching.identifier_column_index == 8
        assert config.matching.strategy == "row_order"
        assert "車台番号" in config.matching.column_keywords
        assert config.export.filename_prefix == "unverified"
        assert config.recognition.provider == "paddleocr"
    
    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("VIN_VERIFY_COLUMN_INDEX", "3")
        monkeypatch.setenv("VIN_VERIFY_MATCH_STRATEGY", "exact_first")
        monkeypatch.setenv("VIN_VERIFY_USE_GPU", "yes")
        monkeypatch.setenv("VIN_VERIFY_TIMEOUT", "12.5")
        config = VerifyConfig()
        assert config.matching.identifier_column_index == 3
        assert config.matching.strategy == "exact_first"
        assert config.recognition.use_gpu is True
        assert config.recognition.timeout == 12.5
    
    def test_invalid_env_value_falls_back(self, monkeypatch):
        monkeypatch.setenv("VIN_VERIFY_COLUMN_INDEX", "I")
        assert VerifyConfig().matching.identifier_column_index == 8
    
    def test_invalid_strategy_env_falls_back(self, monkeypatch):
        monkeypatch.setenv("VIN_VERIFY_MATCH_STRATEGY", "fastest")
        assert VerifyConfig().matching.strategy == "row_order"
    
    def test_strategy_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("VIN_VERIFY_MATCH_STRATEGY", "EXACT_FIRST")
        assert VerifyConfig().matching.strategy == "exact_first"


class TestPersistence:
    """Tests for saving and loading config files."""
    
    def test_api_key_never_saved(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "secret")
        path = tmp_path / "config.json"
        VerifyConfig().save(path)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert "gemini_api_key" not in data["recognition"]
        assert "secret" not in path.read_text(encoding="utf-8")
    
    def test_json_roundtrip(self, tmp_path):
        config = VerifyConfig()
        config.export.filename_prefix = "未認証データ"
        path = tmp_path / "config.json"
        config.save(path)
        loaded = VerifyConfig.load(path)
        assert loaded.export.filename_prefix == "未認証データ"
    
    def test_yaml_partial_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            "matching": {"column_keywords": ["FRAME"], "strategy": "exact_first"},
            "parser": {"preamble_lines": 0},
        }), encoding="utf-8")
        config = VerifyConfig.load(path)
        assert config.matching.column_keywords == ("FRAME",)
        assert config.matching.strategy == "exact_first"
        assert config.parser.preamble_lines == 0
        assert config.matching.identifier_column_index == 8
    
    def test_invalid_strategy_in_file_falls_back(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"matching": {"strategy": "best"}}), encoding="utf-8")
        config = VerifyConfig.load(path)
        assert config.matching.strategy == "row_order"
    
    def test_session_usable_after_invalid_strategy(self, tmp_path, reference_csv):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"matching": {"strategy": "best"}}), encoding="utf-8")
        session = VerificationSession(config=VerifyConfig.load(path))
        session.ingest("ref.csv", reference_csv)
        assert session.verify_text("AAZH20-1002549").is_verified
    
    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"nope": {"a": 1}, "parser": {"bogus": 1}}), encoding="utf-8")
        config = VerifyConfig.load(path)
        assert not hasattr(config.parser, "bogus")


class TestGlobalConfig:
    """Tests for the global configuration singleton."""
    
    def test_singleton(self):
        assert get_config() is get_config()
    
    def test_reset(self):
        first = get_config()
        reset_config()
        assert get_config() is not first
    
    def test_set_config(self):
        config = VerifyConfig()
        set_config(config)
        assert get_config() is config
    
    def test_config_file_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"export": {"source_column": "file"}}), encoding="utf-8")
        monkeypatch.setenv("VIN_VERIFY_CONFIG", str(path))
        assert load_config().export.source_column == "file"
        assert get_config().export.source_column == "file"
