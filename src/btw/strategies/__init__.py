"""Per-target injection strategies."""

from .base import InjectionStrategy
from .claude import ClaudeStrategy
from .copilot import CopilotStrategy
from .cursor import CursorStrategy
from .windsurf import WindsurfStrategy

BUILTIN_STRATEGIES: tuple[type[InjectionStrategy], ...] = (
    ClaudeStrategy,
    CursorStrategy,
    WindsurfStrategy,
    CopilotStrategy,
)

__all__ = [
    "BUILTIN_STRATEGIES",
    "ClaudeStrategy",
    "CopilotStrategy",
    "CursorStrategy",
    "InjectionStrategy",
    "WindsurfStrategy",
]
