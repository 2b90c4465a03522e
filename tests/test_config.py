# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-12
# Description: test_config.py
# -----------------------------------------------------------------------------
import pytest

from api.AppContainer import default_chunking_options
from config.Config import Config


@pytest.fixture
def clean_env(monkeypatch):
    for env_name in Config.ENV_VARS.values():
        monkeypatch.delenv(env_name, raising=False)
    return monkeypatch


def test_from_env_uses_defaults_for_unset_values(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "sk-test")

    cfg = Config.from_env()

    assert cfg.openai_api_key == "sk-test"
    assert cfg.openai_embed_model == "text-embedding-3-small"
    assert cfg.embedding_dimensions == 1536
    assert cfg.uses_chroma_cloud is False


def test_from_env_reads_overrides(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "sk-test")
    clean_env.setenv("OPENAI_EMBED_MODEL", "text-embedding-3-large")
    clean_env.setenv("KB_EMBEDDING_DIMENSIONS", " 3072 ")
    clean_env.setenv("CHROMA_PATH", "/tmp/kb-chroma")

    cfg = Config.from_env()

    assert cfg.openai_embed_model == "text-embedding-3-large"
    assert cfg.embedding_dimensions == 3072
    assert cfg.chroma_path == "/tmp/kb-chroma"


def test_missing_api_key_fails_fast(clean_env):
    with pytest.raises(ValueError, match="OPENAI_API_KEY"):
        Config.from_env()


def test_non_numeric_dimensions_rejected(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "sk-test")
    clean_env.setenv("KB_EMBEDDING_DIMENSIONS", "wide")

    with pytest.raises(ValueError, match="KB_EMBEDDING_DIMENSIONS"):
        Config.from_env()


def test_chroma_cloud_needs_tenant_and_database():
    with pytest.raises(ValueError, match="CHROMA_TENANT"):
        Config(openai_api_key="sk-test", chroma_api_key="ck-test")

    cfg = Config(openai_api_key="sk-test", chroma_api_key="ck-test", chroma_tenant="t", chroma_database="kb")
    assert cfg.uses_chroma_cloud is True


def test_summary_has_no_secrets():
    cfg = Config(openai_api_key="sk-secret", chroma_api_key="ck-secret", chroma_tenant="t", chroma_database="kb")

    summary = cfg.summary()

    assert "sk-secret" not in summary.values()
    assert "ck-secret" not in summary.values()
    assert summary["chroma_mode"] == "cloud"


def test_zero_chunk_size_means_adaptive():
    opts = default_chunking_options()

    assert opts.chunk_size is None or opts.chunk_size >= 50
    assert opts.resolve(2000).chunk_size >= opts.min_target_size
