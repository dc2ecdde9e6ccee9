#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
config_loader.py

Extraction settings:
- defaults for the recognized style library and its APIs
- optional YAML file (``extraction:`` section)
- lookup through MACARON_EXTRACT_CONFIG or ./macaron.yaml
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import yaml

CONFIG_ENV_VAR = "MACARON_EXTRACT_CONFIG"
CONFIG_FILENAME = "macaron.yaml"

DEFAULT_SOURCE_MODULE = "macaron"

DEFAULT_EXTRACTION_APIS = (
    "styled",
    "recipe",
    "style",
    "style_variants",
    "global_style",
    "create_theme",
    "create_global_theme",
    "create_theme_contract",
    "create_global_theme_contract",
    "keyframes",
    "global_keyframes",
    "font_face",
    "global_font_face",
    "create_var",
    "create_container",
    "layer",
    "global_layer",
)


@dataclass
class ExtractionConfig:
    """Extraction settings."""
    source_module: str = DEFAULT_SOURCE_MODULE
    apis: List[str] = field(default_factory=lambda: list(DEFAULT_EXTRACTION_APIS))
    identifier_prefix: str = "macaron"
    module_suffix: str = "extracted"
    package: Optional[str] = None
    tree_shake: bool = True
    prune_relocated: bool = True

    def to_dict(self) -> Dict:
        return {
            "source_module": self.source_module,
            "apis": list(self.apis),
            "identifier_prefix": self.identifier_prefix,
            "module_suffix": self.module_suffix,
            "package": self.package,
            "tree_shake": self.tree_shake,
            "prune_relocated": self.prune_relocated,
        }


def find_config_yaml() -> Optional[str]:
    """
    Look for a config file:
    1. environment variable MACARON_EXTRACT_CONFIG
    2. macaron.yaml in the current working directory
    """
    if os.environ.get(CONFIG_ENV_VAR):
        return os.environ[CONFIG_ENV_VAR]
    if os.path.isfile(CONFIG_FILENAME):
        return CONFIG_FILENAME
    return None


def _expect(value, kind, key: str):
    if not isinstance(value, kind):
        raise ValueError(f"extraction.{key} must be {kind.__name__}, got {type(value).__name__}")
    return value


def config_from_dict(data: Optional[Dict]) -> ExtractionConfig:
    cfg = ExtractionConfig()
    if not data:
        return cfg
    _expect(data, dict, "<section>")

    if "source_module" in data:
        cfg.source_module = _expect(data["source_module"], str, "source_module")
    if "apis" in data:
        apis = _expect(data["apis"], list, "apis")
        for api in apis:
            _expect(api, str, "apis[]")
        cfg.apis = list(apis)
    if "identifier_prefix" in data:
        cfg.identifier_prefix = _expect(data["identifier_prefix"], str, "identifier_prefix")
    if "module_suffix" in data:
        cfg.module_suffix = _expect(data["module_suffix"], str, "module_suffix")
    if data.get("package") is not None:
        cfg.package = _expect(data["package"], str, "package")
    if "tree_shake" in data:
        cfg.tree_shake = _expect(data["tree_shake"], bool, "tree_shake")
    if "prune_relocated" in data:
        cfg.prune_relocated = _expect(data["prune_relocated"], bool, "prune_relocated")
    return cfg


def load_config(config_path: Optional[str] = None) -> ExtractionConfig:
    """
    Read the ``extraction`` section of a YAML config.

    Without an explicit path the lookup of ``find_config_yaml`` is used, and
    defaults are returned when nothing is found. An explicit path that does
    not exist is an error.
    """
    if config_path is None:
        config_path = find_config_yaml()
        if config_path is None:
            return ExtractionConfig()

    if not os.path.isfile(config_path):
        raise FileNotFoundError(f"config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}

    if not isinstance(cfg, dict):
        raise ValueError(f"{config_path}: top level must be a mapping")
    return config_from_dict(cfg.get("extraction", {}))
