import pytest

from structask.core.errors import ConfigurationError
from structask.llm.provider_config import load_key


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("openai", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_environment_key_wins(clean_env, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", " sk-from-env \n")
    (clean_env / "openai.txt").write_text("sk-from-file")

    assert load_key() == "sk-from-env"


def test_legacy_environment_variable(clean_env, monkeypatch):
    monkeypatch.setenv("openai", "sk-legacy")

    assert load_key() == "sk-legacy"


def test_key_file(clean_env):
    key_file = clean_env / "config" / "openai.key"
    key_file.parent.mkdir()
    key_file.write_text("sk-from-key-file\n")

    assert load_key() == "sk-from-key-file"


def test_legacy_key_file(clean_env):
    (clean_env / "openai.txt").write_text("  sk-from-txt  ")

    assert load_key() == "sk-from-txt"


def test_missing_key(clean_env):
    with pytest.raises(ConfigurationError):
        load_key()


def test_key_without_prefix_is_rejected(clean_env, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "not-a-key")

    with pytest.raises(ConfigurationError) as excinfo:
        load_key()

    assert "'sk-' prefix" in str(excinfo.value)
