"""
tests/integration/test_compatibility.py

Integration tests for the CompatibilityValidator against installed models.

Verifies:
✔ Checks report the first failing issue in order
✔ Freshly acquired model validates without a session attached
✔ Tokenizer mismatch is detected and repaired; repair converges
✔ Repair never touches the primary artifact
✔ Attached session: tokenizer-not-loaded until the session binds the model
✔ Repair asks the bound session to reload a missing tokenizer
✔ Storage failures surface as validation-error, never raise
"""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from provisioning import CompatibilityValidator, TokenizerSidecar
from provisioning.compatibility import (
    ISSUE_NO_MODEL_SELECTED,
    ISSUE_RECORD_MISSING,
    ISSUE_SIDECAR_MISSING,
    ISSUE_TOKENIZER_MISMATCH,
    ISSUE_TOKENIZER_NOT_LOADED,
    ISSUE_VALIDATION_ERROR,
)
from storage import ContentStoreError

GOOD_URL = "https://good.example/model.bin"
PAYLOAD = b"\x05" * 4096


async def _write_wrong_sidecar(engine, model_id: str = "m1") -> None:
    sidecar = TokenizerSidecar(tokenizer_source="bert-base-uncased", architecture="text-generation")
    await engine.blob_store.write_file(engine.sidecar_path(model_id), sidecar.model_dump_json())


# ─────────────────────────────────────────────────────────────────────────────
# Standalone validator
# ─────────────────────────────────────────────────────────────────────────────


class TestValidate:

    @pytest.fixture
    def engine(self, make_engine):
        engine, _ = make_engine({GOOD_URL: (200, PAYLOAD)})
        return engine

    @pytest.fixture
    def validator(self, engine, registry):
        return CompatibilityValidator(engine, registry)

    @pytest.mark.asyncio
    async def test_nothing_selected(self, validator):
        result = await validator.validate()
        assert not result.is_valid
        assert result.issue == ISSUE_NO_MODEL_SELECTED

    @pytest.mark.asyncio
    async def test_record_missing(self, validator):
        result = await validator.validate("m1")
        assert result.issue == ISSUE_RECORD_MISSING
        assert result.model_id == "m1"

    @pytest.mark.asyncio
    async def test_sidecar_missing(self, validator, engine):
        await engine.acquire(GOOD_URL, "m1")
        await engine.blob_store.delete_recursive(engine.sidecar_path("m1"))

        result = await validator.validate("m1")
        assert result.issue == ISSUE_SIDECAR_MISSING
        assert result.tokenizer_source == "Xenova/gpt2"

    @pytest.mark.asyncio
    async def test_fresh_install_is_valid(self, validator, engine, registry):
        await engine.acquire(GOOD_URL, "m1")
        await registry.set_selected("m1")

        result = await validator.validate()
        assert result.is_valid
        assert result.model_id == "m1"
        assert result.issue is None

    @pytest.mark.asyncio
    async def test_mismatch_detected(self, validator, engine):
        await engine.acquire(GOOD_URL, "m1")
        await _write_wrong_sidecar(engine)

        result = await validator.validate("m1")
        assert result.issue == ISSUE_TOKENIZER_MISMATCH
        assert result.tokenizer_source == "bert-base-uncased"
        assert "Xenova/gpt2" in result.detail

    @pytest.mark.asyncio
    async def test_repair_converges(self, validator, engine):
        await engine.acquire(GOOD_URL, "m1")
        artifact = await engine.resolve_path("m1")
        await _write_wrong_sidecar(engine)

        assert await validator.repair("m1") is True

        assert (await validator.validate("m1")).is_valid
        sidecar = await engine.read_sidecar("m1")
        assert sidecar.tokenizer_source == "Xenova/gpt2"
        assert sidecar.repaired is True
        assert Path(artifact).read_bytes() == PAYLOAD

    @pytest.mark.asyncio
    async def test_repair_uninstalled_model_fails(self, validator):
        assert await validator.repair("m1") is False

    @pytest.mark.asyncio
    async def test_storage_failure_is_validation_error(self, validator, registry):
        registry.get_selected = AsyncMock(side_effect=ContentStoreError("locked"))

        result = await validator.validate()
        assert not result.is_valid
        assert result.issue == ISSUE_VALIDATION_ERROR
        assert "locked" in result.detail


# ─────────────────────────────────────────────────────────────────────────────
# Validator attached to a live session
# ─────────────────────────────────────────────────────────────────────────────


class TestAttachedSession:

    @pytest.mark.asyncio
    async def test_not_loaded_until_session_binds(self, make_orchestrator, registry):
        orchestrator, _ = make_orchestrator({GOOD_URL: (200, PAYLOAD)})
        await orchestrator.engine.acquire(GOOD_URL, "m1")
        await registry.set_selected("m1")

        result = await orchestrator.validator.validate()
        assert result.issue == ISSUE_TOKENIZER_NOT_LOADED

        await orchestrator.initialize()
        assert (await orchestrator.validator.validate()).is_valid

    @pytest.mark.asyncio
    async def test_repair_reloads_tokenizer(self, make_orchestrator, registry):
        orchestrator, _ = make_orchestrator({GOOD_URL: (200, PAYLOAD)})
        await orchestrator.engine.acquire(GOOD_URL, "m1")
        await registry.set_selected("m1")
        await orchestrator.initialize()
        await _write_wrong_sidecar(orchestrator.engine)
        orchestrator.session.tokenizer = None

        assert await orchestrator.validator.repair("m1") is True
        assert orchestrator.tokenizer_loaded_for("m1")

    @pytest.mark.asyncio
    async def test_repair_does_not_converge_for_unbound_model(self, make_orchestrator):
        orchestrator, _ = make_orchestrator({GOOD_URL: (200, PAYLOAD)})
        await orchestrator.engine.acquire(GOOD_URL, "m1")
        await _write_wrong_sidecar(orchestrator.engine)

        # Sidecar is fixed, but no session is bound to m1
        assert await orchestrator.validator.repair("m1") is False
        assert (await orchestrator.engine.read_sidecar("m1")).tokenizer_source == "Xenova/gpt2"
