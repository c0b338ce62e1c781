"""Unified logging module for the Octopus Intelligent reconciler."""

from .unified_logger import OctopusLogger, get_logger

__all__ = ["OctopusLogger", "get_logger"]
