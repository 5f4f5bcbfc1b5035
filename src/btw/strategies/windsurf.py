"""Injection strategy for Windsurf (.windsurfrules)."""

from __future__ import annotations

from typing import Any

from ..models import AITarget, Manifest
from .base import BASE_CONFIG_SCHEMA, InjectionStrategy

WINDSURF_CONFIG_SCHEMA: dict[str, Any] = {
    **BASE_CONFIG_SCHEMA,
    "properties": {
        **BASE_CONFIG_SCHEMA["properties"],
        "cascade": {
            "type": "object",
            "properties": {"agents": {"type": "array"}},
        },
    },
}


class WindsurfStrategy(InjectionStrategy):
    """Handles .windsurfrules and .windsurf/config.json."""

    target = AITarget.WINDSURF
    config_schema = WINDSURF_CONFIG_SCHEMA

    def render_instructions(self, manifest: Manifest, timestamp: str) -> str:
        lines = [f"# {manifest.title} Rules", ""]
        if manifest.description:
            lines.extend([manifest.description, ""])

        lines.extend(self._workflow_info_lines(manifest))
        lines.append("")

        for number, agent in enumerate(manifest.agents, start=1):
            lines.append(f"## {number}. {agent.name}")
            lines.append("")
            if agent.description:
                lines.extend([agent.description, ""])
            if agent.tags:
                lines.extend([f"Tags: {', '.join(agent.tags)}", ""])
            lines.extend([
                f"<agent id=\"{agent.id}\">",
                agent.system_prompt,
                "</agent>",
                "",
            ])

        lines.extend(self._footer_lines(timestamp))
        lines.append("")
        return "\n".join(lines)

    def render_config(self, manifest: Manifest, timestamp: str) -> dict[str, Any]:
        return {
            "cascade": {
                "agents": [self._agent_settings(agent) for agent in manifest.agents],
            },
            "_btw": self._metadata(manifest, timestamp),
        }
