"""
HTTP surface: model management, diagnostics and text enhancement.
"""

from .routes import enhance_router, get_infra, router

__all__ = [
    "router",
    "enhance_router",
    "get_infra",
]
