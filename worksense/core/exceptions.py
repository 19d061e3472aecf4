from __future__ import annotations

from typing import Any, Dict, Optional


class WorksenseError(Exception):
    """Base exception for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class InvalidRequestError(WorksenseError):
    """Missing or invalid request data."""
    status_code = 400


class PermissionDeniedError(WorksenseError):
    status_code = 403


class NotFoundError(WorksenseError):
    status_code = 404

    def __init__(self, entity: str, entity_id: Any = None) -> None:
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(WorksenseError):
    status_code = 409


class SuggestionParseError(WorksenseError):
    """Generator output could not be turned into suggestions."""
    status_code = 500


class GeneratorError(WorksenseError):
    """The backlog generator failed or returned an unusable envelope."""
    status_code = 502

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        response_data: Optional[Any] = None
    ) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.response_data = response_data


class GeneratorNotConfiguredError(GeneratorError):
    status_code = 503

    def __init__(self, message: str = "Backlog generator is not configured") -> None:
        super().__init__(message)
