"""
Test suite for infrastructure integration.

Verifies:
- Configuration system reads the environment with local-first defaults
- Factories build the configured backends
- onnx falls back to simulated when onnxruntime is missing
- Bootstrap wires one orchestrator to its validator
- Each bootstrap is an independent graph
- App settings parse the CORS origin list
"""

import logging

import pytest

import inference.onnx
from config import Config
from infra import InfraBootstrap, InfraConfig
from inference import OnnxRuntimeBackend, SimulatedBackend
from provisioning import DEFAULT_URL_RULES
from services.rewrite import RuleBasedRewriter
from storage import InMemoryContentStore, SQLiteContentStore

ENV_VARS = (
    "DATA_DIR",
    "CONTENT_STORE_BACKEND",
    "CONTENT_STORE_PATH",
    "INFERENCE_BACKEND",
    "TOKENIZER_MODE",
    "REWRITER_SEED",
    "URL_REWRITE_RULES_FILE",
    "MIN_ARTIFACT_BYTES",
    "PLACEHOLDER_STEP_DELAY_S",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def local_config(clean_env, tmp_path):
    clean_env.setenv("DATA_DIR", str(tmp_path))
    clean_env.setenv("CONTENT_STORE_BACKEND", "memory")
    clean_env.setenv("INFERENCE_BACKEND", "simulated")
    return InfraConfig.from_env()


class TestInfraConfig:
    """Test infrastructure configuration."""

    def test_config_from_env_defaults(self, clean_env):
        """Verify defaults are the local-first stack."""
        config = InfraConfig.from_env()

        assert config.data_dir == "./data"
        assert config.content_store_backend == "sqlite"
        assert config.content_store_path.endswith("content.db")
        assert config.inference_backend == "onnx"
        assert config.tokenizer_mode == "hash"
        assert config.rewriter_seed is None
        assert config.min_artifact_bytes == 1024
        assert config.download_user_agent == "NoteEditor/1.0"

    def test_config_reads_environment(self, clean_env, tmp_path):
        clean_env.setenv("DATA_DIR", str(tmp_path))
        clean_env.setenv("REWRITER_SEED", "11")
        clean_env.setenv("MIN_ARTIFACT_BYTES", "2048")
        clean_env.setenv("PLACEHOLDER_STEP_DELAY_S", "0")

        config = InfraConfig.from_env()

        assert config.content_store_path == str(tmp_path / "content.db")
        assert config.rewriter_seed == 11
        assert config.min_artifact_bytes == 2048
        assert config.placeholder_step_delay_s == 0.0

    def test_unknown_tokenizer_mode_uses_hash(self, clean_env):
        clean_env.setenv("TOKENIZER_MODE", "sentencepiece")
        assert InfraConfig.from_env().effective_tokenizer_mode == "hash"

    def test_config_creates_content_stores(self, local_config):
        """Verify content store creation."""
        assert isinstance(local_config.create_content_store(), InMemoryContentStore)

        local_config.content_store_backend = "sqlite"  # type: ignore
        assert isinstance(local_config.create_content_store(), SQLiteContentStore)

    def test_config_creates_simulated_backend(self, local_config):
        backend = local_config.create_inference_backend(local_config.create_rewriter())
        assert isinstance(backend, SimulatedBackend)

    def test_onnx_falls_back_without_runtime(self, local_config, monkeypatch):
        """Verify onnx degrades to simulated when onnxruntime is missing."""
        monkeypatch.setattr(inference.onnx, "ONNXRUNTIME_AVAILABLE", False)
        local_config.inference_backend = "onnx"  # type: ignore

        backend = local_config.create_inference_backend(local_config.create_rewriter())

        assert isinstance(backend, SimulatedBackend)

    def test_onnx_backend_when_available(self, local_config, monkeypatch):
        monkeypatch.setattr(inference.onnx, "ONNXRUNTIME_AVAILABLE", True)
        local_config.inference_backend = "onnx"  # type: ignore

        backend = local_config.create_inference_backend(local_config.create_rewriter())

        assert isinstance(backend, OnnxRuntimeBackend)

    def test_seeded_rewriters_agree(self, local_config):
        local_config.rewriter_seed = 5
        first = local_config.create_rewriter()
        second = local_config.create_rewriter()

        assert isinstance(first, RuleBasedRewriter)
        assert first.style_rewrite("A quick note", "blog") == second.style_rewrite("A quick note", "blog")

    def test_url_rules_default_without_file(self, local_config):
        assert local_config.load_url_rules() == DEFAULT_URL_RULES


class TestInfraBootstrap:
    """Test infrastructure bootstrap."""

    @pytest.mark.asyncio
    async def test_bootstrap_creates_all_components(self, local_config):
        """Verify bootstrap initializes and wires every component."""
        bootstrap = InfraBootstrap(local_config)

        assert bootstrap.engine.registry is bootstrap.registry
        assert bootstrap.validator.tokenizer_state is bootstrap.orchestrator
        assert bootstrap.orchestrator.backend is bootstrap.backend
        assert bootstrap.blob_store.models_dir == f"{local_config.data_dir}/models"
        assert "SimulatedBackend" not in repr(bootstrap)
        assert "backend=simulated" in repr(bootstrap)

        await bootstrap.aclose()

    @pytest.mark.asyncio
    async def test_bootstraps_are_independent(self, local_config):
        """Verify no state is shared between bootstraps."""
        first = InfraBootstrap(local_config)
        second = InfraBootstrap(local_config)

        await first.registry.set_selected("gpt2-onnx")

        assert first.orchestrator is not second.orchestrator
        assert await second.registry.get_selected() is None

        await first.aclose()
        await second.aclose()

    @pytest.mark.asyncio
    async def test_content_store_override(self, local_config):
        store = InMemoryContentStore({"current_model": "minilm-onnx"})
        bootstrap = InfraBootstrap(local_config, content_store=store)

        assert await bootstrap.registry.get_selected() == "minilm-onnx"
        await bootstrap.aclose()


class TestAppConfig:
    """Test app-level settings."""

    def test_cors_origins_split_and_trimmed(self, monkeypatch):
        monkeypatch.setattr(Config, "CORS_ALLOW_ORIGINS", "https://notes.example, http://localhost:3000,,")
        assert Config.cors_origins() == ["https://notes.example", "http://localhost:3000"]

    def test_cors_wildcard(self, monkeypatch):
        monkeypatch.setattr(Config, "CORS_ALLOW_ORIGINS", "*")
        assert Config.cors_origins() == ["*"]

    def test_unknown_log_level_uses_info(self, monkeypatch):
        monkeypatch.setattr(Config, "LOG_LEVEL", "CHATTY")
        assert Config.log_level() == logging.INFO
