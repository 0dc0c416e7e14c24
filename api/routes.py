"""
Model management and enhancement routes.

Diagnostics surface plus the operations an editor UI needs: list, acquire,
select, validate, repair and remove models; configure style; enhance text.

Subsystem failures come back as tagged bodies (success/selected/removed,
is_fallback). Only identifiers missing from the catalog produce an error
status (404).
"""

import logging
from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request

from infra import InfraBootstrap
from inference import StyleConfig
from provisioning import ModelDescriptor, ValidationResult

from .schemas import (
    AcquireRequest,
    AcquireResponse,
    CatalogEntry,
    EnhanceRequest,
    EnhanceResponse,
    InstalledResponse,
    RemoveResponse,
    RepairResponse,
    SelectResponse,
    StyleResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/models", tags=["models"])
enhance_router = APIRouter(prefix="/enhance", tags=["enhance"])


def get_infra(request: Request) -> InfraBootstrap:
    return request.app.state.infra


def _descriptor_or_404(infra: InfraBootstrap, model_id: str) -> ModelDescriptor:
    if model_id not in infra.catalog:
        raise HTTPException(status_code=404, detail=f"Unknown model: {model_id}")
    return infra.catalog.describe(model_id)


# ── Diagnostics ───────────────────────────────────────────────────────────


@router.get("/catalog", response_model=List[CatalogEntry])
async def list_catalog(infra: InfraBootstrap = Depends(get_infra)):
    installed = set(await infra.engine.list_installed())
    return [
        CatalogEntry(
            model_id=d.model_id,
            display_name=d.display_name,
            architecture=d.architecture.value,
            tokenizer_source=d.tokenizer_source,
            size_hint=d.size_hint,
            description=d.description,
            installed=d.model_id in installed,
        )
        for d in infra.catalog.describe_all()
    ]


@router.get("/installed", response_model=InstalledResponse)
async def list_installed(infra: InfraBootstrap = Depends(get_infra)):
    installed = await infra.engine.list_installed()
    try:
        selected = await infra.registry.get_selected()
    except Exception as e:
        logger.warning(f"Could not read selected model: {e}")
        selected = None
    paths = {model_id: await infra.engine.resolve_path(model_id) for model_id in installed}
    return InstalledResponse(installed=installed, selected=selected, paths=paths)


@router.get("/status")
async def model_status(infra: InfraBootstrap = Depends(get_infra)):
    return asdict(await infra.orchestrator.get_status())


@router.get("/diagnostics")
async def model_diagnostics(infra: InfraBootstrap = Depends(get_infra)):
    return (await infra.orchestrator.diagnostics()).to_dict()


# ── Management ────────────────────────────────────────────────────────────


@router.post("/{model_id}/acquire", response_model=AcquireResponse)
async def acquire_model(
    model_id: str,
    background_tasks: BackgroundTasks,
    body: Optional[AcquireRequest] = None,
    infra: InfraBootstrap = Depends(get_infra),
):
    """
    Download and install a model.

    Without a URL the catalog's default source is used. With
    background=true the download runs after the response is sent.
    """
    descriptor = _descriptor_or_404(infra, model_id)
    body = body or AcquireRequest()
    url = body.url or descriptor.source_url
    if not url:
        raise HTTPException(status_code=422, detail=f"No source URL for {model_id}")

    if body.background:
        background_tasks.add_task(infra.engine.acquire, url, model_id)
        logger.info(f"Acquisition of {model_id} scheduled from {url}")
        return AcquireResponse(model_id=model_id, success=True, status="accepted")

    success = await infra.engine.acquire(url, model_id)
    path = await infra.engine.resolve_path(model_id) if success else None
    return AcquireResponse(
        model_id=model_id,
        success=success,
        status="installed" if success else "failed",
        path=path,
    )


@router.post("/{model_id}/select", response_model=SelectResponse)
async def select_model(model_id: str, infra: InfraBootstrap = Depends(get_infra)):
    _descriptor_or_404(infra, model_id)
    selected = await infra.orchestrator.select_model(model_id)
    return SelectResponse(model_id=model_id, selected=selected, state=infra.orchestrator.state.value)


@router.delete("/{model_id}", response_model=RemoveResponse)
async def remove_model(model_id: str, infra: InfraBootstrap = Depends(get_infra)):
    _descriptor_or_404(infra, model_id)
    removed = await infra.orchestrator.remove_model(model_id)
    return RemoveResponse(model_id=model_id, removed=removed)


@router.get("/{model_id}/validation", response_model=ValidationResult)
async def validate_model(model_id: str, infra: InfraBootstrap = Depends(get_infra)):
    _descriptor_or_404(infra, model_id)
    return await infra.validator.validate(model_id)


@router.post("/{model_id}/repair", response_model=RepairResponse)
async def repair_model(model_id: str, infra: InfraBootstrap = Depends(get_infra)):
    _descriptor_or_404(infra, model_id)
    repaired = await infra.validator.repair(model_id)
    return RepairResponse(model_id=model_id, repaired=repaired)


# ── Enhancement ───────────────────────────────────────────────────────────


@enhance_router.put("/style", response_model=StyleResponse)
async def configure_style(style: StyleConfig, infra: InfraBootstrap = Depends(get_infra)):
    system_prompt = await infra.orchestrator.configure(style)
    return StyleResponse(style=style, system_prompt=system_prompt)


@enhance_router.post("", response_model=EnhanceResponse)
async def enhance_text(body: EnhanceRequest, infra: InfraBootstrap = Depends(get_infra)):
    result = await infra.orchestrator.enhance(body.text, body.style)
    return EnhanceResponse(**asdict(result))
