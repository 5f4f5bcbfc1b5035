"""Configuration constants and per-target file layouts."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .models import AITarget

BTW_VERSION = "1.0.0"

# Environment variables
ENV_BTW_HOME = "BTW_HOME"
ENV_LOG_FORMAT = "BTW_LOG_FORMAT"
ENV_LOG_LEVEL = "BTW_LOG_LEVEL"

BTW_HOME = Path(os.environ.get(ENV_BTW_HOME) or Path.home() / ".btw")
STATE_FILE = BTW_HOME / "state.json"
WORKFLOWS_DIR = BTW_HOME / "workflows"
STATE_VERSION = "1.0.0"

MANIFEST_FILENAME = "btw.yaml"
BACKUP_EXTENSION = ".btw-backup"

# Marker protocol
MARKER_TOOL = "BTW"
START_SENTINEL = "<!-- BTW_START -->"
END_SENTINEL = "<!-- BTW_END -->"


@dataclass(frozen=True)
class AiToolConfig:
    """File layout of one AI tool, relative to the project root."""

    config_path: str
    instructions_path: str
    project_config_path: str
    tool_dir: str
    supports_system_prompt: bool = True
    supports_multi_agent: bool = False


AI_TOOL_MAPPINGS: dict[AITarget, AiToolConfig] = {
    AITarget.CLAUDE: AiToolConfig(
        config_path=".claude/settings.json",
        instructions_path=".claude/instructions.md",
        project_config_path=".claude/project.json",
        tool_dir=".claude",
    ),
    AITarget.CURSOR: AiToolConfig(
        config_path=".cursor/settings.json",
        instructions_path=".cursorrules",
        project_config_path=".cursor/config.json",
        tool_dir=".cursor",
        supports_multi_agent=True,
    ),
    AITarget.WINDSURF: AiToolConfig(
        config_path=".windsurf/config.json",
        instructions_path=".windsurfrules",
        project_config_path=".windsurf/project.json",
        tool_dir=".windsurf",
        supports_multi_agent=True,
    ),
    AITarget.COPILOT: AiToolConfig(
        config_path=".github/copilot/config.json",
        instructions_path=".github/copilot-instructions.md",
        project_config_path=".github/copilot/settings.json",
        tool_dir=".github/copilot",
    ),
}

DEFAULT_AI_TARGET = AITarget.CLAUDE
