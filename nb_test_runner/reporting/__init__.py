"""Reporting module - JSON run summaries."""

from .json_reporter import JsonReporter

__all__ = ["JsonReporter"]
