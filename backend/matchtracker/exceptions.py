from pydantic import BaseModel
from typing import Optional


class ProblemDetail(BaseModel):
    """RFC 7807 shaped error outcome handed to the presentation layer."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
        type_: str = "about:blank",
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type_
        self.code = code

    def to_problem(self, instance: str | None = None) -> ProblemDetail:
        return ProblemDetail(
            type=self.type,
            title=self.title,
            detail=self.detail,
            status=self.status_code,
            instance=instance,
            code=self.code,
        )


class InvalidState(DomainException):
    """An operation was invoked while its preconditions do not hold."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=409,
            title="Invalid state",
            detail=detail,
            code="invalid_state",
        )


class PersistenceFailure(DomainException):
    """A gateway call failed; the operation was not applied locally."""

    def __init__(self, operation: str, detail: str | None = None) -> None:
        super().__init__(
            status_code=503,
            title="Persistence failure",
            detail=detail or f"{operation} failed",
            code="persistence_failure",
        )
        self.operation = operation


class ReconciliationConflict(DomainException):
    """Local set bookkeeping disagrees with what the store reports."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=409,
            title="Reconciliation conflict",
            detail=detail,
            code="reconciliation_conflict",
        )


class RecordNotFound(DomainException):
    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(
            status_code=404,
            title=f"{kind.capitalize()} not found",
            detail=f"{kind} '{record_id}' not found",
            code="not_found",
        )
