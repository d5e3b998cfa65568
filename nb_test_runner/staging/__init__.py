"""Staging module - single-folder test file staging."""

from .target import (
    COMPANION_FILES,
    check_single_folder,
    forget_module,
    resolve_source,
    stage_module,
)

__all__ = [
    "COMPANION_FILES",
    "check_single_folder",
    "forget_module",
    "resolve_source",
    "stage_module",
]
