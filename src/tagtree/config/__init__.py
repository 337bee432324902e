"""
Configuration module for tagtree.
"""

from .loader import load_config
from .schema import (
    AppConfig,
    FileSortMode,
    HierarchyConfig,
    HierarchyLevel,
    LoggingConfig,
    PropertyLevel,
    SortMode,
    TagLevel,
    VaultConfig,
    ViewState,
)

__all__ = [
    "load_config",
    "AppConfig",
    "FileSortMode",
    "HierarchyConfig",
    "HierarchyLevel",
    "LoggingConfig",
    "PropertyLevel",
    "SortMode",
    "TagLevel",
    "VaultConfig",
    "ViewState",
]
