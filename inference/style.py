"""
Enhancement style configuration.

A StyleConfig deterministically derives the system prompt. With no real
prompt-conditioned generation in play, the prompt only decides which style
tag the rewriter receives.
"""

from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["blog_enhancer", "creative_writer", "technical_writer", "casual_writer"]
Tone = Literal["formal", "casual", "academic", "creative"]
Focus = Literal["grammar", "engagement", "clarity", "creativity"]
StyleTag = Literal["creative", "technical", "casual", "blog"]

ROLE_PROMPTS: Dict[str, str] = {
    "blog_enhancer": (
        "You are a professional blog editor. Enhance this text by making it more engaging, "
        "detailed, and well-structured while maintaining the original meaning. "
        "Add relevant examples and improve flow."
    ),
    "creative_writer": (
        "You are a creative writer. Transform this text into more vivid, imaginative, and "
        "compelling content. Add descriptive language, metaphors, and storytelling elements."
    ),
    "technical_writer": (
        "You are a technical writer. Improve this text by adding clarity, structure, and "
        "detailed explanations. Make complex concepts accessible and well-organized."
    ),
    "casual_writer": (
        "You are a casual, friendly writer. Make this text more conversational, relatable, "
        "and engaging while keeping it natural and approachable."
    ),
}

TONE_ADDITIONS: Dict[str, str] = {
    "formal": " Use formal, professional language.",
    "casual": " Use casual, conversational tone.",
    "academic": " Use academic, scholarly style.",
    "creative": " Use creative, expressive language.",
}

FOCUS_ADDITIONS: Dict[str, str] = {
    "grammar": " Focus on grammar and clarity.",
    "engagement": " Make it more engaging and interesting.",
    "clarity": " Prioritize clarity and understanding.",
    "creativity": " Enhance creativity and expression.",
}


class StyleConfig(BaseModel):
    role: Role = "blog_enhancer"
    style: Optional[Tone] = None
    focus: Optional[Focus] = None
    custom_prompt: Optional[str] = None
    max_tokens: int = Field(default=150, gt=0)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)

    def system_prompt(self) -> str:
        if self.custom_prompt:
            return self.custom_prompt
        prompt = ROLE_PROMPTS.get(self.role, ROLE_PROMPTS["blog_enhancer"])
        if self.style:
            prompt += TONE_ADDITIONS[self.style]
        if self.focus:
            prompt += FOCUS_ADDITIONS[self.focus]
        return prompt


def style_tag_for_prompt(system_prompt: str) -> StyleTag:
    """First matching keyword wins; anything else is treated as blog editing."""
    lowered = system_prompt.lower()
    for tag in ("creative", "technical", "casual"):
        if tag in lowered:
            return tag
    return "blog"
