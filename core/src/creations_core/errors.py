from __future__ import annotations


class SubmissionError(Exception):
    """A gallery form submission did not complete."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(SubmissionError):
    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("Form validation failed")
        self.errors = dict(errors)


class Unauthenticated(SubmissionError):
    def __init__(self) -> None:
        super().__init__("No active session")


class BackendRejected(SubmissionError):
    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransportFailure(SubmissionError):
    pass


class SubmissionInProgress(SubmissionError):
    def __init__(self) -> None:
        super().__init__("Submission already in progress")


class RecordLoadError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RecordNotFound(RecordLoadError):
    def __init__(self, item_id: str) -> None:
        super().__init__("Gallery item not found")
        self.item_id = item_id


class RecordLoadFailed(RecordLoadError):
    def __init__(self, reason: str = "") -> None:
        super().__init__("Failed to load gallery item data")
        self.reason = reason
