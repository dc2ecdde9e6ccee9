#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Program-unique identifier generation.
"""

from __future__ import annotations

import keyword
import re
from typing import Iterable, Set

_NON_IDENT_RE = re.compile(r"[^0-9A-Za-z_]+")
_TRAILING_DIGITS_RE = re.compile(r"\d+$")


def _base_name(hint: str) -> str:
    base = _NON_IDENT_RE.sub("_", hint).strip("_")
    base = _TRAILING_DIGITS_RE.sub("", base)
    return base or "temp"


class UidGenerator:
    """
    Hands out identifiers that collide with nothing used in the module.

    ``generate("button")`` gives ``_button``, then ``_button2``, ``_button3``...
    Every name returned is reserved, so two calls never return the same name.
    """

    def __init__(self, used: Iterable[str] = ()):
        self._used: Set[str] = set(used)

    def reserve(self, name: str) -> None:
        self._used.add(name)

    def is_used(self, name: str) -> bool:
        return name in self._used

    def generate(self, hint: str) -> str:
        base = _base_name(hint)
        i = 1
        while True:
            candidate = f"_{base}" if i == 1 else f"_{base}{i}"
            if candidate not in self._used and not keyword.iskeyword(candidate):
                break
            i += 1
        self._used.add(candidate)
        return candidate
