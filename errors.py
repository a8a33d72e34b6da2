"""Exception hierarchy shared by flows, services and handlers."""

from __future__ import annotations


class ReportBotError(Exception):
    """Base error for the reporting bot."""


class ValidationError(ReportBotError):
    """User input failed validation; the step is re-prompted."""


class NotFoundError(ReportBotError):
    """An entity expected by the flow does not exist."""

    def __init__(self, kind: str, entity_id: str | None = None):
        super().__init__(f"{kind} {entity_id or ''} not found".strip())
        self.kind = kind
        self.entity_id = entity_id


class AccessDeniedError(ReportBotError):
    """The user may not act on the requested site or report."""


class RenderError(ReportBotError):
    """Document rendering failed."""


__all__ = [
    "ReportBotError",
    "ValidationError",
    "NotFoundError",
    "AccessDeniedError",
    "RenderError",
]
