"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules.  Settings, logging, the database gateway, identity
resolution and error translation live in ``core``; each domain
(children, schedules) has its schemas in ``schemas``, its business
logic in ``services`` and its routes in ``api/v1/endpoints``.
"""

from .main import app  # noqa: F401
