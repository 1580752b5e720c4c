"""Top-level package for edm-version-sniffer.

Exports the pure resolver entry points and the centralized logging setup.
"""

from .logging_config import configure_logging  # re-export for convenience
from .resolver import build_catalog, format_dependency, management_key, resolve

__all__ = [
    "build_catalog",
    "configure_logging",
    "format_dependency",
    "management_key",
    "resolve",
]
