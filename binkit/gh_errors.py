"""Errors raised when talking to the GitHub API."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any


class GhApiError(Exception):
    """Base class for GitHub API errors."""


class GhApiContextError(GhApiError):
    """An error together with a description of what was being done."""

    def __init__(self, context: object, err: BaseException) -> None:
        super().__init__(f"Context: '{context}', err: '{err}'")
        self.context = str(context)
        self.err = err
        self.__cause__ = err


class GraphQLErrorsError(GhApiError):
    """The remote reported errors while processing a GraphQL query."""

    def __init__(self, errors: GhGraphQLErrors) -> None:
        super().__init__(f"Remote failed to process GraphQL query: {errors}")
        self.errors = errors


class RateLimitError(GhApiError):
    def __init__(self, retry_after: timedelta | None = None) -> None:
        super().__init__(f"Hit rate-limit, retry after {retry_after}")
        self.retry_after = retry_after


class NotFoundError(GhApiError):
    def __init__(self) -> None:
        super().__init__("Corresponding resource is not found")


class UnauthorizedError(GhApiError):
    def __init__(self) -> None:
        super().__init__("Does not have permission to access the API")


_NO_CONTEXT = (RateLimitError, NotFoundError, UnauthorizedError)


def with_context(error: BaseException, context: object) -> BaseException:
    """Wrap ``error`` with ``context``, leaving rate-limit, not-found and unauthorized as they are."""
    if isinstance(error, _NO_CONTEXT):
        return error
    return GhApiContextError(context, error)


@dataclass(frozen=True)
class GraphQLErrorType:
    """The ``type`` field of a GraphQL error."""

    name: str

    @classmethod
    def parse(cls, value: Any) -> GraphQLErrorType:
        if not isinstance(value, str):
            raise ValueError(f"GraphQL error type must be a string, got {value!r}")
        return cls(value)

    @property
    def is_rate_limited(self) -> bool:
        return self.name == "RATE_LIMITED"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class GraphQLLocation:
    line: int
    column: int


def _location(obj: Any) -> GraphQLLocation:
    if not isinstance(obj, Mapping):
        raise ValueError(f"GraphQL location must be an object, got {obj!r}")
    try:
        line, column = obj["line"], obj["column"]
    except KeyError as exc:
        raise ValueError(f"GraphQL location is missing field {exc.args[0]!r}") from None
    if not isinstance(line, int) or not isinstance(column, int) or line < 0 or column < 0:
        raise ValueError(f"invalid GraphQL location {obj!r}")
    return GraphQLLocation(line, column)


@dataclass
class GraphQLError:
    message: str
    error_type: GraphQLErrorType
    locations: tuple[GraphQLLocation, ...] | None = None
    others: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, obj: Any) -> GraphQLError:
        if not isinstance(obj, Mapping):
            raise ValueError(f"GraphQL error must be an object, got {obj!r}")
        try:
            message, raw_type = obj["message"], obj["type"]
        except KeyError as exc:
            raise ValueError(f"GraphQL error is missing field {exc.args[0]!r}") from None
        if not isinstance(message, str):
            raise ValueError(f"GraphQL error message must be a string, got {message!r}")
        raw_locations = obj.get("locations")
        if raw_locations is None:
            locations = None
        elif isinstance(raw_locations, list):
            locations = tuple(_location(item) for item in raw_locations)
        else:
            raise ValueError(f"GraphQL error locations must be a list, got {raw_locations!r}")
        others = {
            key: value
            for key, value in obj.items()
            if key not in ("message", "type", "locations")
        }
        return cls(message, GraphQLErrorType.parse(raw_type), locations, others)


def _json_display(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


@dataclass
class GhGraphQLErrors:
    errors: tuple[GraphQLError, ...]

    @classmethod
    def from_json(cls, items: Any) -> GhGraphQLErrors:
        if not isinstance(items, Sequence) or isinstance(items, (str, bytes)):
            raise ValueError(f"GraphQL errors must be a list, got {items!r}")
        return cls(tuple(GraphQLError.from_json(item) for item in items))

    def is_rate_limited(self) -> bool:
        return any(error.error_type.is_rate_limited for error in self.errors)

    def is_not_found_error(self) -> bool:
        return any(error.error_type.name == "NOT_FOUND" for error in self.errors)

    def __str__(self) -> str:
        lines = []
        for error in self.errors:
            parts = [f"type: '{error.error_type}', msg: '{error.message}'"]
            parts.extend(
                f", occured on query line {loc.line} col {loc.column}"
                for loc in error.locations or ()
            )
            parts.extend(f", {key}: {_json_display(value)}" for key, value in error.others.items())
            lines.append("".join(parts))
        return "\n".join(lines)


def from_graphql_errors(errors: GhGraphQLErrors) -> GhApiError:
    """Classify GraphQL errors as rate-limit, not-found or a general GraphQL failure."""
    if errors.is_rate_limited():
        return RateLimitError(None)
    if errors.is_not_found_error():
        return NotFoundError()
    return GraphQLErrorsError(errors)