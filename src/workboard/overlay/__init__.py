"""Overlay - Durable user metadata layered over tickets and pull requests."""

from workboard.overlay.exceptions import MetadataError, ParentCycleError, UnknownSectionError
from workboard.overlay.models import HiddenStatus, PRMetadata, Section, TaskMetadata
from workboard.overlay.store import MetadataStore
from workboard.overlay.visibility import effective_hidden_status, is_task_visible

__all__ = [
    "HiddenStatus",
    "MetadataError",
    "MetadataStore",
    "PRMetadata",
    "ParentCycleError",
    "Section",
    "TaskMetadata",
    "UnknownSectionError",
    "effective_hidden_status",
    "is_task_visible",
]
