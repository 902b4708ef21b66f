"""
Service layer abstraction.

Each service encapsulates business logic for a domain (children,
schedules).  Services run their SQL through ``core.db`` and raise the
errors defined in ``core.errors``; API handlers stay free of SQL and
status-code decisions.
"""
