from __future__ import annotations

from typing import Literal

SubmissionFailureReason = Literal["network_failure", "service_rejected", "malformed"]


class DomainError(Exception):
    pass


class DomainValidationError(DomainError):
    pass


class DomainInvariantError(DomainError):
    pass


class DomainDependencyError(DomainError):
    pass


class UnsupportedLanguageError(DomainValidationError):
    pass


class UnsupportedExtensionError(DomainValidationError):
    pass


class MissingInputError(DomainValidationError):
    pass


class SubmissionError(DomainDependencyError):
    def __init__(self, reason: SubmissionFailureReason, detail: str = "") -> None:
        self.reason = reason
        self.detail = detail
        message = f"submission failed ({reason})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class PollTimeout(DomainDependencyError):
    pass


class ServiceReportedFailure(DomainError):
    pass
