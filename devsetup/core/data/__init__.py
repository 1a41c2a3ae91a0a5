"""
Data layer — the built-in catalog and configuration templates.

Usage::

    from devsetup.core.data import TARGETS, PREREQUISITES
"""

from devsetup.core.data.catalog import PREREQUISITES, TARGETS  # noqa: F401
