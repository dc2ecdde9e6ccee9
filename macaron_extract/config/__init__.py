# -*- coding: utf-8 -*-
"""
Extraction configuration.
"""

from .config_loader import (
    CONFIG_ENV_VAR,
    DEFAULT_EXTRACTION_APIS,
    DEFAULT_SOURCE_MODULE,
    ExtractionConfig,
    config_from_dict,
    find_config_yaml,
    load_config,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_EXTRACTION_APIS",
    "DEFAULT_SOURCE_MODULE",
    "ExtractionConfig",
    "config_from_dict",
    "find_config_yaml",
    "load_config",
]
