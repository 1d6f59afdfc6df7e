"""Exceptions related to work-status."""

from collections.abc import Sequence

__all__ = [
    "WorkStatusException",
    "InputException",
    "ParseError",
    "ExtractionError",
    "ResolutionError",
    "ResourceMetaError",
    "FetchError",
    "ResourceNotFoundError",
    "ObjectNotFoundError",
    "ConflictError",
    "ListError",
    "AggregateError",
]


class WorkStatusException(Exception):
    """Generic base exception used for this library."""


class InputException(WorkStatusException):
    """Raised when the input files or values are not formatted as expected."""


class ParseError(WorkStatusException):
    """Raised when a path expression cannot be parsed."""

    def __init__(self, name: str, path: str, message: str) -> None:
        super().__init__(
            f"failed to parse json path {path} of {name} with error: {message}"
        )
        self.name = name
        self.path = path


class ExtractionError(WorkStatusException):
    """Raised when a path resolves to a value that is not a supported scalar."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name


class ResolutionError(WorkStatusException):
    """Raised when the paths for a feedback rule cannot be resolved."""


class ResourceMetaError(InputException):
    """Raised when a manifest does not declare complete resource coordinates."""


class FetchError(WorkStatusException):
    """Raised when a resource could not be fetched from the spoke cluster."""


class ResourceNotFoundError(FetchError):
    """Raised when a resource does not exist on the spoke cluster."""


class ObjectNotFoundError(WorkStatusException):
    """Raised when an object is not found in the store."""


class ConflictError(WorkStatusException):
    """Raised when a status write is rejected because the record changed."""

    def __init__(
        self, resource_name: str, expected_version: str, actual_version: str
    ) -> None:
        super().__init__(
            f"Conflict updating {resource_name}: expected resource version "
            f"{expected_version} but found {actual_version}"
        )
        self.resource_name = resource_name
        self.expected_version = expected_version
        self.actual_version = actual_version


class ListError(WorkStatusException):
    """Raised when the set of Work records could not be listed."""


class AggregateError(WorkStatusException):
    """Holds a list of errors collected without stopping at the first one."""

    def __init__(self, errors: Sequence[Exception]) -> None:
        self.errors = list(errors)
        if len(self.errors) == 1:
            message = str(self.errors[0])
        else:
            message = "[" + ", ".join(str(err) for err in self.errors) + "]"
        super().__init__(message)


def aggregate_errors(errors: Sequence[Exception]) -> AggregateError | None:
    """Return an AggregateError for the errors or None when there are none.

    Nested aggregates are flattened so the message lists each error once.
    """
    flat: list[Exception] = []
    for err in errors:
        if isinstance(err, AggregateError):
            flat.extend(err.errors)
        else:
            flat.append(err)
    if not flat:
        return None
    return AggregateError(flat)
