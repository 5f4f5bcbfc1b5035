"""Injection strategy for Claude Code (.claude/instructions.md)."""

from __future__ import annotations

from typing import Any

from ..models import AITarget, Manifest
from .base import BASE_CONFIG_SCHEMA, InjectionStrategy

CLAUDE_CONFIG_SCHEMA: dict[str, Any] = {
    **BASE_CONFIG_SCHEMA,
    "properties": {
        **BASE_CONFIG_SCHEMA["properties"],
        "model": {"type": "string"},
        "settings": {"type": "object"},
    },
}


class ClaudeStrategy(InjectionStrategy):
    """Handles .claude/instructions.md and .claude/settings.json."""

    target = AITarget.CLAUDE
    config_schema = CLAUDE_CONFIG_SCHEMA

    def render_instructions(self, manifest: Manifest, timestamp: str) -> str:
        lines = [f"# {manifest.title}", ""]

        if manifest.description:
            lines.extend([manifest.description, ""])

        lines.extend(["## Workflow Information", ""])
        lines.extend(self._workflow_info_lines(manifest))
        lines.append("")

        lines.extend(["## Agents", ""])
        for index, agent in enumerate(manifest.agents):
            lines.extend([f"### {agent.name}", ""])

            if agent.description:
                lines.extend([f"> {agent.description}", ""])

            if agent.tags:
                lines.extend([f"**Tags:** {', '.join(agent.tags)}", ""])

            lines.extend(["#### Instructions", "", agent.system_prompt, ""])

            if index < len(manifest.agents) - 1:
                lines.extend(["---", ""])

        lines.append("")
        lines.extend(self._footer_lines(timestamp))
        lines.append("")
        return "\n".join(lines)

    def render_config(self, manifest: Manifest, timestamp: str) -> dict[str, Any]:
        config: dict[str, Any] = {}
        # Claude Code takes a single model; the first agent's choice wins
        if manifest.agents[0].model:
            config["model"] = manifest.agents[0].model
        config["_btw"] = self._metadata(manifest, timestamp)
        return config
