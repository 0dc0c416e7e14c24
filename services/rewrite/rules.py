"""
Rule-based rewriter.

Appends a phrase drawn from a per-style bank (short text gets an ending,
questions a fixed response, everything else an expansion), then applies a
handful of vocabulary substitutions.
"""

import random
import re
from typing import Dict, List, Optional, Tuple

from .base import StyleRewriter

SHORT_TEXT_WORDS = 10

ENDINGS: Dict[str, List[str]] = {
    "creative": [
        "This idea dances between reality and imagination, painting vivid pictures of possibility.",
        "Like threads in a rich tapestry, these concepts weave together to create something beautiful.",
        "The essence of this thought sparkles with creative potential, waiting to be explored.",
        "These words carry the magic of storytelling, transforming simple ideas into captivating narratives.",
        "In the garden of creativity, this concept blooms with vibrant colors and endless possibilities.",
        "This perspective opens doorways to worlds unseen, where imagination takes flight.",
        "Like a melody that lingers in the mind, this idea resonates with creative harmony.",
    ],
    "technical": [
        "This approach establishes a robust framework for systematic analysis and implementation.",
        "The methodology outlined here provides scalable solutions with optimal performance characteristics.",
        "These principles form the foundation for efficient, maintainable system architecture.",
        "This technical approach leverages proven algorithms and best practices for reliable outcomes.",
        "The implementation strategy ensures compatibility, security, and long-term sustainability.",
        "This framework incorporates industry standards and optimization techniques for maximum efficiency.",
        "The architectural design emphasizes modularity, reusability, and performance optimization.",
    ],
    "casual": [
        "Pretty interesting stuff when you think about it, right?",
        "It's one of those things that makes you go 'hmm, never thought of it that way.'",
        "That's the kind of insight that sticks with you and changes how you see things.",
        "You know what's cool about this? It's so simple yet so effective.",
        "This is exactly the kind of thing that makes conversations interesting.",
        "It's funny how something so straightforward can be so eye-opening.",
        "That's what I love about ideas like this: they're both practical and thought-provoking.",
    ],
    "blog": [
        "This insight offers readers practical value they can immediately apply to their own situations.",
        "The implications of this perspective extend far beyond the surface, creating meaningful engagement.",
        "This concept provides a fresh lens through which readers can examine their own experiences.",
        "These ideas bridge the gap between theory and real-world application with remarkable clarity.",
        "This approach empowers readers with actionable insights and deeper understanding.",
        "The practical wisdom embedded in this concept resonates with authentic human experience.",
        "This perspective illuminates pathways to growth and positive transformation.",
    ],
}

EXPANSIONS: Dict[str, List[str]] = {
    "creative": [
        "The creative spirit within these words invites us to explore uncharted territories of thought.",
        "This concept shimmers with artistic potential, ready to inspire new forms of expression.",
        "Through the lens of creativity, we see not just what is, but what could be.",
        "These ideas pulse with the rhythm of innovation, beckoning us toward fresh perspectives.",
    ],
    "technical": [
        "From a technical perspective, this implementation considers multiple variables and dependencies.",
        "The systematic approach outlined here addresses both immediate requirements and future scalability.",
        "This methodology incorporates error handling, validation, and performance monitoring.",
        "The technical architecture ensures reliability, maintainability, and efficient resource utilization.",
    ],
    "casual": [
        "When you really think about it, this makes a lot of sense in everyday situations.",
        "It's one of those 'aha' moments where everything just clicks into place perfectly.",
        "This reminds me of how small changes can make such a big difference in real life.",
        "The more you consider it, the more you realize how relevant this is to daily experience.",
    ],
    "blog": [
        "This insight opens up fascinating avenues for exploration and personal development.",
        "The depth of this concept reveals layers of meaning that enhance our understanding.",
        "This perspective offers valuable takeaways that readers can integrate into their daily lives.",
        "The practical applications of this idea extend across multiple areas of personal and professional growth.",
    ],
}

QUESTION_RESPONSES: Dict[str, str] = {
    "creative": (
        "This question opens a canvas of possibilities, inviting us to paint answers with "
        "the brush of imagination and the colors of creative insight."
    ),
    "technical": (
        "This technical inquiry requires systematic analysis of the underlying components, "
        "their interactions, and the optimal implementation strategies for reliable solutions."
    ),
    "casual": (
        "That's actually a really good question! It's the kind of thing that gets you thinking "
        "about the bigger picture and how it all connects together."
    ),
    "blog": (
        "This thought-provoking question invites readers to reflect deeply on their own experiences "
        "and discover new perspectives that can enhance their understanding."
    ),
}

SUBSTITUTIONS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\b(important|significant)\b", re.IGNORECASE), "crucial and transformative"),
    (re.compile(r"\b(good|great)\b", re.IGNORECASE), "exceptional and valuable"),
    (re.compile(r"\b(shows|demonstrates)\b", re.IGNORECASE), "clearly illustrates and validates"),
    (re.compile(r"\b(help|helps)\b", re.IGNORECASE), "effectively supports and enhances"),
]


class RuleBasedRewriter(StyleRewriter):
    """
    Phrase-bank rewriter.

    Pass a seeded random.Random (or REWRITER_SEED) for reproducible output.
    """

    name = "rule-based"

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def style_rewrite(self, text: str, style_tag: str) -> str:
        if not text.strip():
            return text

        tag = style_tag if style_tag in ENDINGS else "blog"
        if len(text.split()) < SHORT_TEXT_WORDS:
            addition = self.rng.choice(ENDINGS[tag])
        elif text.rstrip().endswith("?"):
            addition = QUESTION_RESPONSES[tag]
        else:
            addition = self.rng.choice(EXPANSIONS[tag])

        enhanced = f"{text} {addition}"
        for pattern, replacement in SUBSTITUTIONS:
            enhanced = pattern.sub(replacement, enhanced)
        return enhanced
