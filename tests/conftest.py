"""Pytest configuration and fixtures."""

import random
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import httpx
import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from provisioning import (  # noqa: E402
    DEFAULT_DESCRIPTORS,
    AcquisitionEngine,
    ArchitectureFamily,
    ModelCatalog,
    ModelDescriptor,
    ModelRegistry,
)
from storage import InMemoryContentStore, LocalBlobStore  # noqa: E402

GOOD_URL = "https://good.example/model.bin"

TEST_DESCRIPTOR = ModelDescriptor(
    model_id="m1",
    display_name="Test model",
    architecture=ArchitectureFamily.TEXT_GENERATION,
    tokenizer_source="Xenova/gpt2",
    source_url=GOOD_URL,
)

Route = Tuple[int, bytes]


class RecordingTransport(httpx.MockTransport):
    """
    MockTransport serving fixed routes and recording every request.

    routes: url -> (status, body). Unknown URLs answer 404. HEAD requests get
    the status and a content-length header but no body.
    """

    def __init__(self, routes: Optional[Dict[str, Route]] = None, fail_all: bool = False):
        self.routes: Dict[str, Route] = dict(routes or {})
        self.fail_all = fail_all
        self.calls: List[Tuple[str, str]] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append((request.method, url))
        if self.fail_all:
            raise httpx.ConnectError("network unreachable", request=request)
        status, body = self.routes.get(url, (404, b"not found"))
        if request.method == "HEAD":
            return httpx.Response(status, headers={"content-length": str(len(body))})
        return httpx.Response(status, content=body)


@pytest.fixture
def content_store():
    return InMemoryContentStore()


@pytest.fixture
def registry(content_store):
    return ModelRegistry(content_store)


@pytest.fixture
def catalog():
    return ModelCatalog(list(DEFAULT_DESCRIPTORS) + [TEST_DESCRIPTOR])


@pytest.fixture
def make_engine(tmp_path, catalog, registry) -> Callable[..., Tuple[AcquisitionEngine, RecordingTransport]]:
    """Factory: build an AcquisitionEngine over tmp_path and a RecordingTransport."""

    def _make(routes: Optional[Dict[str, Route]] = None, fail_all: bool = False, **kwargs):
        transport = RecordingTransport(routes, fail_all=fail_all)
        client = httpx.AsyncClient(transport=transport)
        blob_store = LocalBlobStore(tmp_path / "docs", http_client=client)
        kwargs.setdefault("placeholder_step_delay_s", 0)
        engine = AcquisitionEngine(catalog, registry, blob_store, http_client=client, **kwargs)
        return engine, transport

    return _make


@pytest.fixture
def make_orchestrator(make_engine, registry):
    """Factory: wire engine, validator, backend and rewriter like InfraBootstrap does."""
    from inference import EnhancementOrchestrator, SimulatedBackend
    from provisioning import CompatibilityValidator
    from services.rewrite import RuleBasedRewriter

    def _make(routes: Optional[Dict[str, Route]] = None, backend=None, rewriter=None, fail_all: bool = False):
        engine, transport = make_engine(routes, fail_all=fail_all)
        validator = CompatibilityValidator(engine, registry)
        rewriter = rewriter or RuleBasedRewriter(random.Random(1))
        backend = backend or SimulatedBackend(rewriter)
        orchestrator = EnhancementOrchestrator(engine, registry, validator, backend, rewriter)
        return orchestrator, transport

    return _make
