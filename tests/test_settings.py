import pytest

from webapp.settings import load_settings

ENV_VARS = [
    "BRIEF_DATA_DIR",
    "BRIEF_HOTEL_FILE",
    "BRIEF_SOURCES_FILE",
    "BRIEF_CHUNKS_FILE",
    "BRIEF_TOP_N_CHUNKS",
    "NARRATIVE_PROVIDER",
    "NARRATIVE_MODEL",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return tmp_path / "missing.env"


def test_defaults(clean_env):
    settings = load_settings(clean_env)

    assert settings.data_dir.name == "data"
    assert settings.hotel_file == "hotel.json"
    assert settings.top_n_chunks == 3
    assert settings.narrative_provider == "openai"
    assert settings.narrative_model is None
    assert settings.narrative_configured is False


def test_environment_overrides(clean_env, monkeypatch, tmp_path):
    monkeypatch.setenv("BRIEF_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("BRIEF_TOP_N_CHUNKS", "5")
    monkeypatch.setenv("NARRATIVE_PROVIDER", "Anthropic")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")

    settings = load_settings(clean_env)

    assert settings.data_dir == tmp_path
    assert settings.top_n_chunks == 5
    assert settings.narrative_provider == "anthropic"
    assert settings.narrative_api_key == "sk-ant-test"
    assert settings.narrative_configured is True


def test_credential_must_match_provider(clean_env, monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
    assert load_settings(clean_env).narrative_configured is False
