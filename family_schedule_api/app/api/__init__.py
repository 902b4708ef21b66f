"""
API package containing versioned routes.

Each version subpackage (currently only ``v1``) exposes a ``router``
that includes its domain endpoints; ``main.create_app`` mounts it
under ``settings.api_prefix``.
"""
