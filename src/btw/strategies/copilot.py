"""Injection strategy for GitHub Copilot (.github/copilot-instructions.md)."""

from __future__ import annotations

from typing import Any

from ..models import AITarget, Manifest
from .base import BASE_CONFIG_SCHEMA, InjectionStrategy

COPILOT_CONFIG_SCHEMA: dict[str, Any] = {
    **BASE_CONFIG_SCHEMA,
    "properties": {
        **BASE_CONFIG_SCHEMA["properties"],
        "instructionsFile": {"type": "string"},
        "model": {"type": "string"},
    },
}


class CopilotStrategy(InjectionStrategy):
    """Handles .github/copilot-instructions.md and .github/copilot/config.json.

    Copilot has no notion of multiple agents, so every agent's prompt is
    rendered as a section of one instruction document.
    """

    target = AITarget.COPILOT
    config_schema = COPILOT_CONFIG_SCHEMA

    def render_instructions(self, manifest: Manifest, timestamp: str) -> str:
        lines = [f"# Copilot Instructions: {manifest.title}", ""]
        if manifest.description:
            lines.extend([manifest.description, ""])

        lines.extend(self._workflow_info_lines(manifest))
        lines.append("")

        for agent in manifest.agents:
            heading = f"## {agent.name}"
            if agent.tags:
                heading += f" ({', '.join(agent.tags)})"
            lines.extend([heading, ""])
            if agent.description:
                lines.extend([f"_{agent.description}_", ""])
            lines.extend([agent.system_prompt, ""])

        lines.extend(self._footer_lines(timestamp))
        lines.append("")
        return "\n".join(lines)

    def render_config(self, manifest: Manifest, timestamp: str) -> dict[str, Any]:
        config: dict[str, Any] = {
            "instructionsFile": ".github/copilot-instructions.md",
        }
        if manifest.agents[0].model:
            config["model"] = manifest.agents[0].model
        config["_btw"] = self._metadata(manifest, timestamp)
        return config
