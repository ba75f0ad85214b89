"""Tests for configuration loading and prompt templates."""

import pytest

from shopx.core.config import Config, get_stealth_args, load_config


@pytest.fixture
def clear_config_cache():
    load_config.cache_clear()
    yield
    load_config.cache_clear()


def test_defaults():
    config = Config()
    assert config.storefront.name == "shopapp"
    assert config.storefront.checkout_identifiers[0] == '[data-testid="buy-now-btn"]'
    assert config.retry.max_attempts == 3
    assert config.orchestrator.max_ranked == 5
    assert config.orchestrator.max_recovery_cycles == 1


def test_model_validate_overrides_sections():
    config = Config.model_validate(
        {"retry": {"max_attempts": 5}, "orchestrator": {"simplify_labels": False}, "llm": {"provider": "groq"}}
    )
    assert config.retry.max_attempts == 5
    assert config.retry.base_delay == 1.0
    assert config.orchestrator.simplify_labels is False
    assert config.llm.provider == "groq"


def test_load_config_from_env_path(tmp_path, monkeypatch, clear_config_cache):
    path = tmp_path / "shopx.toml"
    path.write_text('[storefront]\nsettle_seconds = 0.5\n\n[output]\nscreenshot_dir = "/tmp/shots"\n')
    monkeypatch.setenv("SHOPX_CONFIG", str(path))

    config = load_config()

    assert config.storefront.settle_seconds == 0.5
    assert config.output.screenshot_dir == "/tmp/shots"
    assert load_config() is config


def test_load_prompt_formats_bundled_template(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    prompt = Config().load_prompt("resolve_choice", count=3, response="the blue one", products="1. A\n2. B\n3. C")

    assert "Always return an integer from 1 to 3" in prompt
    assert "<selectedOption> the blue one </selectedOption>" in prompt
    assert prompt == prompt.strip()


def test_load_prompt_prefers_working_directory(tmp_path, monkeypatch):
    (tmp_path / "prompts").mkdir()
    (tmp_path / "prompts" / "plan_query.md").write_text("Custom planner for {user_prompt}\n")
    monkeypatch.chdir(tmp_path)

    assert Config().load_prompt("plan_query", user_prompt="socks") == "Custom planner for socks"


def test_load_prompt_unknown_name():
    with pytest.raises(ValueError):
        Config().load_prompt("does_not_exist")


def test_stealth_args_include_user_agent():
    config = Config()
    args = get_stealth_args(config)
    assert "--disable-blink-features=AutomationControlled" in args
    assert args[-1] == f"--user-agent={config.browser.user_agent}"
