"""
Top-level package for the Family Schedule API.

This file makes ``family_schedule_api`` a Python package so that
modules within ``app`` can be imported using fully qualified names
like ``family_schedule_api.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
