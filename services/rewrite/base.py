"""
Deterministic Enhancer interface.

Role: text -> restyled text for a given style tag.

Rules:
- Pure transformation (no I/O, no state mutation visible to callers)
- Blank input comes back unchanged
- Expected to always succeed; callers still guard against it raising
"""

from abc import ABC, abstractmethod

STYLE_TAGS = ("creative", "technical", "casual", "blog")


class StyleRewriter(ABC):
    """
    Abstract rewriting boundary.
    The orchestrator depends ONLY on this interface.
    """

    name: str = "rewriter"

    @abstractmethod
    def style_rewrite(self, text: str, style_tag: str) -> str:
        """
        Rewrite text in the given style.

        Args:
            text: Input text (may be empty)
            style_tag: One of STYLE_TAGS; unknown tags are treated as "blog"

        Returns:
            Rewritten text
        """
        raise NotImplementedError
