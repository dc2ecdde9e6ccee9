# -*- coding: utf-8 -*-
"""
Tree-wide extraction runs.
"""

from .batch_runner import batch_extract, iter_source_files, process_file

__all__ = ["batch_extract", "iter_source_files", "process_file"]
