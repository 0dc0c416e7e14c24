"""
Inference orchestrator.

Owns the EnhancementSession and its readiness state machine:

    UNINITIALIZED -> INITIALIZING -> READY_WITH_MODEL | READY_FALLBACK_ONLY

and serves enhance() with a three-layer guarantee:

    model backend -> rule-based rewriter -> original text

No public coroutine here raises. Failures surface as tagged fields
(is_fallback, fallback_reason, has_real_model, bool results).
"""

import asyncio
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Optional

from provisioning import AcquisitionEngine, CompatibilityValidator, ModelRegistry, TokenizerState
from services.rewrite import StyleRewriter

from .base import GenerationRequest, InferenceBackend, RuntimeSession
from .style import StyleConfig, style_tag_for_prompt
from .tokenization import Tokenizer, create_tokenizer
from .types import (
    EMERGENCY_CONFIDENCE,
    EMERGENCY_MODEL_USED,
    FALLBACK_CONFIDENCE,
    FALLBACK_MODEL_USED,
    MODEL_CONFIDENCE,
    Diagnostics,
    EnhancementResult,
    FallbackReason,
    ModelStatus,
    ReadinessState,
)

logger = logging.getLogger(__name__)

FALLBACK_MODEL_TYPE = "Rule-based fallback"


def count_tokens(text: str) -> int:
    """Rough token estimate used for reporting."""
    return math.ceil(len(text.split()) * 1.3)


@dataclass
class EnhancementSession:
    """In-memory state for one orchestrator; rebuilt when the selection changes."""

    runtime: Optional[RuntimeSession] = None
    model_id: Optional[str] = None
    tokenizer: Optional[Tokenizer] = None
    style: StyleConfig = field(default_factory=StyleConfig)
    style_restored: bool = False


class EnhancementOrchestrator(TokenizerState):

    def __init__(
        self,
        engine: AcquisitionEngine,
        registry: ModelRegistry,
        validator: CompatibilityValidator,
        backend: InferenceBackend,
        rewriter: StyleRewriter,
        tokenizer_mode: str = "hash",
        tokenizer_cache_dir: Optional[str] = None,
    ):
        self.engine = engine
        self.registry = registry
        self.validator = validator
        self.backend = backend
        self.rewriter = rewriter
        self.tokenizer_mode = tokenizer_mode
        self.tokenizer_cache_dir = tokenizer_cache_dir

        self.state = ReadinessState.UNINITIALIZED
        self.session = EnhancementSession()
        self.load_attempts = 0
        self.last_fallback_reason: Optional[str] = None
        self.last_error: Optional[str] = None
        self._fallback_reason: Optional[str] = None
        self._init_task: Optional[asyncio.Future] = None

        validator.attach(self)

    # ── Initialization ────────────────────────────────────────────────────

    async def initialize(self) -> ReadinessState:
        """
        Bind the session to the selected model.

        Concurrent callers share the in-flight attempt and observe the same
        final state; only one load runs at a time.
        """
        if self._init_task is None or self._init_task.done():
            self._init_task = asyncio.ensure_future(self._initialize())
        return await asyncio.shield(self._init_task)

    async def _initialize(self) -> ReadinessState:
        self.state = ReadinessState.INITIALIZING
        self._teardown()
        try:
            try:
                selected = await self.registry.get_selected()
            except Exception as e:
                logger.error(f"Error reading selected model: {e}")
                self.last_error = str(e)
                selected = None

            if not selected:
                logger.info("No model selected. Using rule-based fallback.")
                return self._settle_fallback(FallbackReason.NO_MODEL_SELECTED)

            self.session.model_id = selected
            path = await self.engine.resolve_path(selected)
            if path is None:
                logger.warning(f"Selected model {selected} has no artifact on disk")
                return self._settle_fallback(FallbackReason.MODEL_FILE_MISSING)

            await self._load_tokenizer(selected)

            self.load_attempts += 1
            try:
                logger.info(f"Loading {selected} from {path} with {self.backend.name} backend")
                self.session.runtime = await self.backend.load(path)
            except Exception as e:
                logger.warning(f"Model load failed, falling back to rule-based enhancement: {e}")
                self.last_error = str(e)
                return self._settle_fallback(FallbackReason.RUNTIME_LOAD_FAILED)

            self.state = ReadinessState.READY_WITH_MODEL
            self._fallback_reason = None
            self.last_error = None
            logger.info(f"Model {selected} ready")
            return self.state

        except Exception as e:
            logger.error(f"Critical error during initialization: {e}", exc_info=True)
            self.last_error = str(e)
            self.session.runtime = None
            return self._settle_fallback(FallbackReason.RUNTIME_LOAD_FAILED)

    def _settle_fallback(self, reason: str) -> ReadinessState:
        self.state = ReadinessState.READY_FALLBACK_ONLY
        self._fallback_reason = reason
        self.last_fallback_reason = reason
        return self.state

    def _teardown(self) -> None:
        self.session.runtime = None
        self.session.model_id = None
        self.session.tokenizer = None

    async def _load_tokenizer(self, model_id: str) -> None:
        self.session.tokenizer = None
        try:
            record = await self.registry.get_record(model_id)
            if record is None:
                return
            loop = asyncio.get_running_loop()
            self.session.tokenizer = await loop.run_in_executor(
                None, create_tokenizer, self.tokenizer_mode, record.tokenizer_source, self.tokenizer_cache_dir
            )
            logger.info(f"Tokenizer {self.session.tokenizer.name} loaded for {model_id}")
        except Exception as e:
            logger.warning(f"Tokenizer for {model_id} not loaded: {e}")

    async def _ensure_ready(self) -> None:
        if self.state in (ReadinessState.UNINITIALIZED, ReadinessState.INITIALIZING):
            await self.initialize()
            return

        # Readiness is re-checked per call against the persisted selection
        try:
            selected = await self.registry.get_selected()
        except Exception as e:
            logger.warning(f"Could not re-check selected model: {e}")
            return

        stale = selected != self.session.model_id
        if not stale and self.state == ReadinessState.READY_WITH_MODEL:
            stale = await self.engine.resolve_path(selected) is None
        if stale:
            logger.info("Model selection or artifact changed; re-initializing session")
            await self.initialize()

    # ── TokenizerState ────────────────────────────────────────────────────

    def tokenizer_loaded_for(self, model_id: str) -> bool:
        return self.session.model_id == model_id and self.session.tokenizer is not None

    async def reload_tokenizer(self, model_id: str) -> bool:
        if self.session.model_id != model_id:
            return False
        await self._load_tokenizer(model_id)
        return self.session.tokenizer is not None

    # ── Enhancement ───────────────────────────────────────────────────────

    async def enhance(self, text: str, style: Optional[StyleConfig] = None) -> EnhancementResult:
        """Enhance text. Always returns a result."""
        started = time.perf_counter()
        text = "" if text is None else str(text)
        try:
            return await self._enhance(text, style, started)
        except Exception as e:
            logger.error(f"Enhancement failed, returning original text: {e}", exc_info=True)
            self.last_fallback_reason = FallbackReason.EMERGENCY
            return self._result(
                text, started, EMERGENCY_MODEL_USED, EMERGENCY_CONFIDENCE, FallbackReason.EMERGENCY
            )

    async def _enhance(self, text: str, style: Optional[StyleConfig], started: float) -> EnhancementResult:
        await self._ensure_ready()
        style = style or await self._current_style()
        system_prompt = style.system_prompt()
        style_tag = style_tag_for_prompt(system_prompt)

        reason = self._fallback_reason or FallbackReason.NO_MODEL_SELECTED
        runtime = self.session.runtime
        if self.state == ReadinessState.READY_WITH_MODEL and runtime is not None:
            request = GenerationRequest(
                text=text,
                system_prompt=system_prompt,
                style_tag=style_tag,
                max_tokens=style.max_tokens,
                temperature=style.temperature,
            )
            try:
                enhanced = await self.backend.generate(runtime, self.session.tokenizer, request)
                return self._result(
                    enhanced, started, f"{self.backend.name}:{self.session.model_id}", MODEL_CONFIDENCE, None
                )
            except Exception as e:
                logger.warning(f"Model inference failed, using rule-based fallback: {e}")
                self.last_error = str(e)
                reason = FallbackReason.INFERENCE_FAILED

        enhanced = self.rewriter.style_rewrite(text, style_tag)
        self.last_fallback_reason = reason
        return self._result(enhanced, started, FALLBACK_MODEL_USED, FALLBACK_CONFIDENCE, reason)

    @staticmethod
    def _result(
        enhanced: str,
        started: float,
        model_used: str,
        confidence: float,
        fallback_reason: Optional[str],
    ) -> EnhancementResult:
        return EnhancementResult(
            enhanced_text=enhanced,
            processing_time_ms=int((time.perf_counter() - started) * 1000),
            model_used=model_used,
            confidence=confidence,
            is_fallback=fallback_reason is not None,
            fallback_reason=fallback_reason,
            tokens_generated=count_tokens(enhanced),
        )

    # ── Style configuration ───────────────────────────────────────────────

    async def _current_style(self) -> StyleConfig:
        if not self.session.style_restored:
            self.session.style_restored = True
            try:
                stored = await self.registry.get_style_config()
                if stored is not None:
                    self.session.style = StyleConfig.model_validate(stored)
            except Exception as e:
                logger.warning(f"Ignoring stored style configuration: {e}")
        return self.session.style

    async def configure(self, style: StyleConfig) -> str:
        """Make style the active configuration and persist it. Returns the system prompt."""
        self.session.style = style
        self.session.style_restored = True
        try:
            await self.registry.put_style_config(style.model_dump())
        except Exception as e:
            logger.warning(f"Style configuration not persisted: {e}")
        return style.system_prompt()

    # ── Model management ──────────────────────────────────────────────────

    async def select_model(self, model_id: str) -> bool:
        """Switch to an installed model: persist, re-initialize, validate, repair."""
        try:
            if model_id not in await self.engine.list_installed():
                logger.warning(f"Cannot select {model_id}: not installed")
                return False
            await self.registry.set_selected(model_id)
        except Exception as e:
            logger.error(f"Error selecting model {model_id}: {e}")
            return False

        # A load still running for the previous selection must not be joined
        if self._init_task is not None and not self._init_task.done():
            await asyncio.shield(self._init_task)
        state = await self.initialize()
        logger.info(f"Switched to {model_id} ({state.value})")

        result = await self.validator.validate(model_id)
        if not result.is_valid:
            logger.warning(f"Model {model_id} failed validation ({result.issue}); attempting repair")
            repaired = await self.validator.repair(model_id)
            logger.info(f"Repair of {model_id} {'succeeded' if repaired else 'did not converge'}")
        return True

    async def remove_model(self, model_id: str) -> bool:
        removed = await self.engine.remove(model_id)
        if self.session.model_id == model_id:
            self._teardown()
            await self.initialize()
        return removed

    # ── Diagnostics ───────────────────────────────────────────────────────

    async def get_status(self) -> ModelStatus:
        """Side-effect-free projection; degrades to partial information."""
        try:
            selected = await self.registry.get_selected()
        except Exception as e:
            return ModelStatus(
                state=self.state,
                has_real_model=self.session.runtime is not None,
                status="Error checking model status",
                model_type=FALLBACK_MODEL_TYPE,
                tokenizer_status="Error",
                error=str(e),
            )

        if not selected:
            return ModelStatus(
                state=self.state,
                has_real_model=False,
                status="No model selected - using fallback system",
                model_type=FALLBACK_MODEL_TYPE,
                tokenizer_status="No model selected",
            )

        path = await self.engine.resolve_path(selected)
        if path is None:
            return ModelStatus(
                state=self.state,
                has_real_model=False,
                status=f"Model selected ({selected}) but file not found - using fallback",
                model_type=FALLBACK_MODEL_TYPE,
                tokenizer_status="Model not found",
                error="Selected model file missing or corrupted",
            )

        sidecar = await self.engine.read_sidecar(selected)
        if self.tokenizer_loaded_for(selected):
            tokenizer_status = f"Active: {sidecar.tokenizer_source if sidecar else self.session.tokenizer.name}"
        elif sidecar is not None:
            tokenizer_status = f"Configured: {sidecar.tokenizer_source} (not loaded)"
        else:
            tokenizer_status = "No tokenizer configured"

        if self.session.runtime is not None and self.session.model_id == selected:
            return ModelStatus(
                state=self.state,
                has_real_model=True,
                status=f"Model loaded and active: {selected}",
                model_type=f"{self.backend.name} model ({selected})",
                tokenizer_status=tokenizer_status,
            )

        if self.state == ReadinessState.READY_FALLBACK_ONLY and self.session.model_id == selected:
            status = f"Model selected ({selected}) but using fallback - runtime loading failed"
        else:
            status = f"Model selected ({selected}) but not loaded yet"
        return ModelStatus(
            state=self.state,
            has_real_model=False,
            status=status,
            model_type=f"Model file ({selected}) -> {FALLBACK_MODEL_TYPE}",
            tokenizer_status=tokenizer_status,
            error=self.last_error,
        )

    async def diagnostics(self) -> Diagnostics:
        report = Diagnostics(
            state=self.state,
            selected_model=None,
            bound_model=self.session.model_id,
            last_fallback_reason=self.last_fallback_reason,
            last_error=self.last_error,
            backend=self.backend.name,
            tokenizer=self.session.tokenizer.name if self.session.tokenizer else None,
        )

        try:
            report.selected_model = await self.registry.get_selected()
        except Exception as e:
            report.errors.append(f"selected_model: {e}")

        report.installed_models = await self.engine.list_installed()
        for model_id in report.installed_models:
            report.artifact_paths[model_id] = await self.engine.resolve_path(model_id)

        try:
            for key in await self.registry.store.list_keys():
                if "model" in key:
                    report.content_store_entries[key] = await self.registry.store.get(key)
        except Exception as e:
            report.errors.append(f"content_store: {e}")

        report.status = await self.get_status()
        return report
