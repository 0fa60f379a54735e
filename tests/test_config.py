import tomllib
from pathlib import Path

from willys.core.config import Config, get_base_url, load_config

ROOT = Path(__file__).parent.parent


def test_defaults():
    config = Config()
    assert config.app.base_url == "https://www.willys.se"
    assert config.http.timeout == 30.0
    assert config.auth.max_auth_retry_attempts == 2
    assert config.delivery.default_picking_fee == 59.0
    assert "ekologisk" in config.ranking.quality_labels


def test_config_file_matches_defaults():
    with open(ROOT / "config.toml", "rb") as f:
        config = Config.model_validate(tomllib.load(f))
    assert config == Config()


def test_partial_config_keeps_other_defaults():
    config = Config.model_validate({"auth": {"max_auth_retry_attempts": 5}})
    assert config.auth.max_auth_retry_attempts == 5
    assert config.auth.min_password_length == 6
    assert config.browser.timing.page_settle == 2.0


def test_load_config_is_cached():
    assert load_config() is load_config()


def test_base_url_env_override(monkeypatch):
    monkeypatch.setenv("WILLYS_BASE_URL", "http://localhost:8080")
    assert get_base_url(Config()) == "http://localhost:8080"

    monkeypatch.delenv("WILLYS_BASE_URL")
    assert get_base_url(Config()) == "https://www.willys.se"
