"""Utility functions for the road mesh tools."""

from .logging import get_logger
from .config import load_config, RoadSettings

__all__ = ["get_logger", "load_config", "RoadSettings"]
