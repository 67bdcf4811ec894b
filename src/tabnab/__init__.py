"""
tabnab - get and extract content from Chrome tabs.
"""

from __future__ import annotations

__version__ = "1.0.1"

from .config import Config
from .container import DependencyContainer
from .pipeline import Pipeline, Selection

__all__ = ["__version__", "Config", "DependencyContainer", "Pipeline", "Selection"]
