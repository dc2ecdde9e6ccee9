"""
Build-time extraction of style-library calls.

Calls into the style library are moved, together with the module-level
code they depend on, into a generated auxiliary module; the original
module imports the results back.
"""

__version__ = "0.1.0"
