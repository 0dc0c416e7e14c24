"""
Deterministic Enhancer exports.

Clean interface for the inference orchestrator to import rewriters.
"""

from .base import STYLE_TAGS, StyleRewriter
from .rules import RuleBasedRewriter

__all__ = [
    "STYLE_TAGS",
    "StyleRewriter",
    "RuleBasedRewriter",
]
