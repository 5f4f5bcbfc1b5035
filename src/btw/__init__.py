"""BTW: workflow injection engine for AI coding assistants."""

__version__ = "0.1.0"
__author__ = "BTW Contributors"
__description__ = "Workflow injection engine for AI coding assistants"

from .engine import InjectionEngine
from .exceptions import BTWError, ErrorCode
from .manifest import load_manifest
from .models import (
    AITarget,
    EjectOptions,
    InjectionResult,
    InjectionStatus,
    InjectOptions,
    Manifest,
    OperationResult,
)
from .workflow import WorkflowDetails, WorkflowManager

__all__ = [
    "AITarget",
    "BTWError",
    "EjectOptions",
    "ErrorCode",
    "InjectOptions",
    "InjectionEngine",
    "InjectionResult",
    "InjectionStatus",
    "Manifest",
    "OperationResult",
    "WorkflowDetails",
    "WorkflowManager",
    "load_manifest",
]
