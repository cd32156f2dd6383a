from __future__ import annotations

from typing import Annotated, Any

from pydantic import BeforeValidator


def _stringify(value: Any) -> Any:
    if value is None:
        return None
    return str(value)


IdStr = Annotated[str, BeforeValidator(_stringify)]
"""Identifier rendered as a hex string on the wire."""

__all__ = ["IdStr"]
