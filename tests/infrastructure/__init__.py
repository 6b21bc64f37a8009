"""
Shared test infrastructure for the template engine.

Modules:
- file_utils: Creating template and data files in temporary directories
"""

from .file_utils import write, write_templates

__all__ = ["write", "write_templates"]
