"""
Compatibility validator.

Checks that an installed model's declared tokenizer metadata matches its
catalog descriptor and that the live enhancement session holds a tokenizer
for it. Checks run in order and stop at the first failure:

  (a) a model is selected (or one was named explicitly)
  (b) its InstalledModelRecord exists
  (c) its TokenizerSidecar exists
  (d) sidecar tokenizer source == descriptor tokenizer source
  (e) the attached session has a tokenizer loaded for this model

Repair only rewrites the sidecar (and asks the session to reload its
tokenizer); the primary artifact is never touched.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from .acquisition import AcquisitionEngine
from .registry import ModelRegistry
from .types import ValidationResult

logger = logging.getLogger(__name__)

ISSUE_NO_MODEL_SELECTED = "no-model-selected"
ISSUE_RECORD_MISSING = "record-missing"
ISSUE_SIDECAR_MISSING = "sidecar-missing"
ISSUE_TOKENIZER_MISMATCH = "tokenizer-mismatch"
ISSUE_TOKENIZER_NOT_LOADED = "tokenizer-not-loaded"
ISSUE_VALIDATION_ERROR = "validation-error"


class TokenizerState(ABC):
    """What the validator needs to know about the live session."""

    @abstractmethod
    def tokenizer_loaded_for(self, model_id: str) -> bool:
        ...

    @abstractmethod
    async def reload_tokenizer(self, model_id: str) -> bool:
        ...


class CompatibilityValidator:

    def __init__(
        self,
        engine: AcquisitionEngine,
        registry: ModelRegistry,
        tokenizer_state: Optional[TokenizerState] = None,
    ):
        self.engine = engine
        self.registry = registry
        self.tokenizer_state = tokenizer_state

    def attach(self, tokenizer_state: TokenizerState) -> None:
        """Bind the session whose tokenizer check (e) inspects."""
        self.tokenizer_state = tokenizer_state

    async def validate(self, model_id: Optional[str] = None) -> ValidationResult:
        try:
            return await self._validate(model_id)
        except Exception as e:
            logger.error(f"Validation failed for {model_id}: {e}")
            return ValidationResult(
                is_valid=False,
                model_id=model_id,
                issue=ISSUE_VALIDATION_ERROR,
                detail=str(e),
                recommendation="Try restarting the app",
            )

    async def _validate(self, model_id: Optional[str]) -> ValidationResult:
        model_id = model_id or await self.registry.get_selected()
        if not model_id:
            return ValidationResult(
                is_valid=False,
                issue=ISSUE_NO_MODEL_SELECTED,
                recommendation="Please select a model first",
            )

        record = await self.registry.get_record(model_id)
        if record is None:
            return ValidationResult(
                is_valid=False,
                model_id=model_id,
                issue=ISSUE_RECORD_MISSING,
                recommendation="Please re-download the model",
            )

        expected = record.descriptor.tokenizer_source
        sidecar = await self.engine.read_sidecar(model_id)
        if sidecar is None:
            return ValidationResult(
                is_valid=False,
                model_id=model_id,
                tokenizer_source=expected,
                issue=ISSUE_SIDECAR_MISSING,
                recommendation="Please re-download the model to get the correct tokenizer",
            )

        if sidecar.tokenizer_source != expected:
            return ValidationResult(
                is_valid=False,
                model_id=model_id,
                tokenizer_source=sidecar.tokenizer_source,
                issue=ISSUE_TOKENIZER_MISMATCH,
                detail=f"Expected {expected}, found {sidecar.tokenizer_source}",
                recommendation="Repair the model configuration or re-download the model",
            )

        if self.tokenizer_state is not None and not self.tokenizer_state.tokenizer_loaded_for(model_id):
            return ValidationResult(
                is_valid=False,
                model_id=model_id,
                tokenizer_source=expected,
                issue=ISSUE_TOKENIZER_NOT_LOADED,
                recommendation="Please re-select the model or restart the app",
            )

        return ValidationResult(is_valid=True, model_id=model_id, tokenizer_source=expected)

    async def repair(self, model_id: str) -> bool:
        """Rewrite the sidecar from the descriptor and re-validate."""
        try:
            record = await self.registry.get_record(model_id)
            if record is None:
                logger.warning(f"Cannot repair {model_id}: not installed")
                return False

            if not await self.engine.write_sidecar(record.descriptor, repaired=True):
                return False
            logger.info(f"Tokenizer sidecar for {model_id} rewritten with {record.descriptor.tokenizer_source}")

            state = self.tokenizer_state
            if state is not None and not state.tokenizer_loaded_for(model_id):
                await state.reload_tokenizer(model_id)

            result = await self.validate(model_id)
            if not result.is_valid:
                logger.warning(f"Repair of {model_id} did not converge: {result.issue}")
            return result.is_valid
        except Exception as e:
            logger.error(f"Error repairing model {model_id}: {e}", exc_info=True)
            return False
