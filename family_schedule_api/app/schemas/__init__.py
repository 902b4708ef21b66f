"""
Pydantic schema definitions for API payloads.

Each domain (children, schedules) defines its own Pydantic models for
request and response bodies.  Schemas are separated from the SQL in
the service layer to decouple API representation from persistence.
"""
