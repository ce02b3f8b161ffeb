"""huelight - Command-line client for Philips Hue bridges.

This package provides a small CLI tool for discovering Hue bridges,
listing lamps and users, and switching, colouring or dimming a single
lamp through the bridge REST API.
"""

__version__ = "0.4.0"
__author__ = "huelight contributors"

from .cli import main
from .config import APPLICATION_NAME, HueLightConfig

__all__ = ["APPLICATION_NAME", "HueLightConfig", "main", "__version__"]
