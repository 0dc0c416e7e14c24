"""Request/response bodies for the HTTP surface."""

from typing import Dict, List, Optional

from pydantic import BaseModel

from inference import StyleConfig


class AcquireRequest(BaseModel):
    url: Optional[str] = None
    background: bool = False


class AcquireResponse(BaseModel):
    model_id: str
    success: bool
    status: str
    path: Optional[str] = None


class CatalogEntry(BaseModel):
    model_id: str
    display_name: str
    architecture: str
    tokenizer_source: str
    size_hint: Optional[str] = None
    description: str = ""
    installed: bool = False


class InstalledResponse(BaseModel):
    installed: List[str]
    selected: Optional[str] = None
    paths: Dict[str, Optional[str]] = {}


class SelectResponse(BaseModel):
    model_id: str
    selected: bool
    state: str


class RemoveResponse(BaseModel):
    model_id: str
    removed: bool


class RepairResponse(BaseModel):
    model_id: str
    repaired: bool


class StyleResponse(BaseModel):
    style: StyleConfig
    system_prompt: str


class EnhanceRequest(BaseModel):
    text: str = ""
    style: Optional[StyleConfig] = None


class EnhanceResponse(BaseModel):
    enhanced_text: str
    processing_time_ms: int
    model_used: str
    confidence: float
    is_fallback: bool
    fallback_reason: Optional[str] = None
    tokens_generated: int = 0
