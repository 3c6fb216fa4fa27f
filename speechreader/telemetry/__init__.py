"""Telemetry and observability helpers.

This package emits structured events for catalog and session activity.
"""

from .logger import SessionLogger

__all__ = ["SessionLogger"]
