"""System prompt construction for sub-agents."""

from __future__ import annotations

import json
from typing import Any

from src.squad.agents.schemas import AgentIdentity, AgentSpecialty, AgentVoice

VOICE_STYLES: dict[AgentVoice, str] = {
    AgentVoice.PROFESSIONAL: "Be professional and polished. Use formal language.",
    AgentVoice.CASUAL: "Be casual and relaxed. Use conversational language.",
    AgentVoice.FRIENDLY: "Be warm and approachable. Balance professionalism with friendliness.",
    AgentVoice.PLAYFUL: "Be fun and energetic. Use humor where appropriate.",
}

GUIDELINES = (
    "- Stay focused on your specialty\n"
    "- Be concise and actionable\n"
    "- If a task is outside your expertise, say so\n"
    "- Return structured output when appropriate"
)


def build_agent_prompt(
    identity: AgentIdentity,
    specialty: AgentSpecialty,
    context: dict[str, Any] | None = None,
) -> str:
    """Build the system prompt for one task.

    The persona, when set, replaces the specialty description in the opening
    line. Voice defaults to friendly. A non-empty ``context`` is rendered as
    indented JSON under a trailing "Task Context" heading.
    """
    voice = VOICE_STYLES[identity.voice or AgentVoice.FRIENDLY]
    intro = identity.persona or specialty.description

    prompt = (
        f"You are {identity.name} {identity.emoji}, {intro}.\n"
        "\n"
        "## Identity\n"
        f"- Your name is **{identity.name}**\n"
        f"- You are a specialist in: {specialty.display_name}\n"
        f"- {specialty.description}\n"
        "\n"
        "## Voice & Tone\n"
        f"{voice}\n"
        "\n"
        "## Your Specialty\n"
        f"{specialty.system_prompt}\n"
        "\n"
        "## Guidelines\n"
        f"{GUIDELINES}"
    )

    if context:
        prompt += f"\n\n# Task Context\n{json.dumps(context, indent=2, default=str)}"
    return prompt
