"""CLI module"""

from .main import cli, main
from .display import Display, Colors

__all__ = [
    "cli",
    "main",
    "Display",
    "Colors",
]
