"""Per-request identifiers shared with log records.

A request carries a correlation id from the moment it enters the
middleware, and an actor id once its bearer token has been resolved.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from dataclasses import dataclass, replace

REQUEST_ID_HEADER = "X-Request-ID"
UNSET = "-"


@dataclass(frozen=True, slots=True)
class RequestContext:
    request_id: str = UNSET
    actor_id: str = UNSET


_context: ContextVar[RequestContext] = ContextVar("taskshare_request_context", default=RequestContext())


def current_context() -> RequestContext:
    return _context.get()


def bind_request_id(request_id: str) -> Token[RequestContext]:
    """Start a fresh context for ``request_id``; the actor is cleared."""

    return _context.set(RequestContext(request_id=request_id))


def bind_actor_id(actor_id: str) -> Token[RequestContext]:
    return _context.set(replace(_context.get(), actor_id=actor_id))


def reset_context(token: Token[RequestContext]) -> None:
    _context.reset(token)


__all__ = [
    "REQUEST_ID_HEADER",
    "RequestContext",
    "bind_actor_id",
    "bind_request_id",
    "current_context",
    "reset_context",
]
