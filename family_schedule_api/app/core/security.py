"""
Request identity resolution.

Every request names the calling parent in a header (``X-User-Id`` by
default).  The value is trusted as given: there is no signature and
no database lookup, so this is a request-scoping convention rather
than authentication.  The check lives behind ``IdentityResolver`` so a
verifying implementation can replace ``HeaderIdentityResolver``
without touching routes or services.

``install_identity_middleware`` runs the resolver before routing.  A
request without an identity is answered with 401 right there, so no
route, service or database call happens for it.
"""

import logging
import re
from typing import Iterable, Optional

from fastapi import FastAPI, Request

from .errors import Unauthenticated, error_response

logger = logging.getLogger(__name__)

# Paths reachable without the identity header.
PUBLIC_PATHS = frozenset({"/health", "/docs", "/docs/oauth2-redirect", "/redoc", "/openapi.json"})

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)", re.ASCII)
_WHOLE_INT = re.compile(r"[+-]?\d+", re.ASCII)


class IdentityResolver:
    """Extract the calling parent's identifier from a request."""

    def resolve(self, request: Request) -> Optional[int]:
        """Return the parent id or raise ``Unauthenticated``."""
        raise NotImplementedError


class HeaderIdentityResolver(IdentityResolver):
    """Read the parent id from a request header.

    With ``strict`` anything but a plain decimal integer made of an
    optional sign and ASCII digits is rejected.  Without it the value
    is parsed like ``parseInt``: leading digits are used and trailing
    garbage is ignored, and a value with no leading digits resolves to
    ``None``, an undefined parent that is passed on unrejected.
    """

    def __init__(self, header_name: str = "X-User-Id", strict: bool = True) -> None:
        self.header_name = header_name
        self.strict = strict

    def resolve(self, request: Request) -> Optional[int]:
        raw = request.headers.get(self.header_name)
        if not raw:
            raise Unauthenticated()
        if self.strict:
            value = raw.strip()
            if _WHOLE_INT.fullmatch(value) is None:
                raise Unauthenticated("Unauthorized access. Invalid user id.")
            return int(value)
        match = _LEADING_INT.match(raw)
        if match is None:
            logger.warning("Identity header %r is not numeric; continuing with undefined parent id", raw)
            return None
        return int(match.group(1))


def install_identity_middleware(app: FastAPI, public_paths: Iterable[str] = PUBLIC_PATHS) -> None:
    """Resolve the caller on every request using ``app.state.identity_resolver``.

    The resolved id is stored on ``request.state.parent_id``.
    """
    public = frozenset(public_paths)

    @app.middleware("http")
    async def resolve_identity(request: Request, call_next):
        if request.url.path in public:
            return await call_next(request)
        resolver: IdentityResolver = request.app.state.identity_resolver
        try:
            request.state.parent_id = resolver.resolve(request)
        except Unauthenticated as exc:
            logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
            return error_response(exc.status_code, exc.message)
        return await call_next(request)


def get_current_parent(request: Request) -> Optional[int]:
    """Dependency returning the parent id resolved by the middleware."""
    if not hasattr(request.state, "parent_id"):
        # Route mounted outside the middleware; refuse rather than guess.
        raise Unauthenticated()
    return request.state.parent_id
