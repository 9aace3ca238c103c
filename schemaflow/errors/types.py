"""Monadic Error Handling Types

Result/Either types for deterministic, composable error propagation through
the validation engine, plus the path-tagged ValidationError record every
stage of the pipeline reports failures with.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import (
    Any, Callable, Generic, Iterator, NoReturn, Sequence,
    TypeVar, Union, final,
)

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")

PathSegment = Union[str, int]
Path = tuple[PathSegment, ...]


class ErrorCode(str, Enum):
    """Closed vocabulary of validation error codes.

    Field stage: required, type, constraint codes, custom_validation
    Strict check: additional_properties
    Model stage: model_validation
    Computed stage: computed_field, computed_field_type
    """
    REQUIRED = "required"
    TYPE = "type"
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    MIN_ITEMS = "min_items"
    MAX_ITEMS = "max_items"
    GT = "gt"
    LT = "lt"
    GTEQ = "gteq"
    LTEQ = "lteq"
    FORMAT = "format"
    CHOICES = "choices"
    SIZE = "size?"
    CUSTOM_VALIDATION = "custom_validation"
    MODEL_VALIDATION = "model_validation"
    COMPUTED_FIELD = "computed_field"
    COMPUTED_FIELD_TYPE = "computed_field_type"
    ADDITIONAL_PROPERTIES = "additional_properties"

    @property
    def stage(self) -> str:
        """Pipeline stage that produces this code."""
        match self:
            case ErrorCode.ADDITIONAL_PROPERTIES:
                return "strict"
            case ErrorCode.MODEL_VALIDATION:
                return "model"
            case ErrorCode.COMPUTED_FIELD | ErrorCode.COMPUTED_FIELD_TYPE:
                return "computed"
            case _:
                return "field"

    @property
    def is_constraint(self) -> bool:
        return self in _CONSTRAINT_CODES


_CONSTRAINT_CODES = frozenset({
    ErrorCode.MIN_LENGTH, ErrorCode.MAX_LENGTH, ErrorCode.MIN_ITEMS, ErrorCode.MAX_ITEMS,
    ErrorCode.GT, ErrorCode.LT, ErrorCode.GTEQ, ErrorCode.LTEQ,
    ErrorCode.FORMAT, ErrorCode.CHOICES, ErrorCode.SIZE,
})


def format_path(path: Sequence[PathSegment]) -> str:
    """Render a path as a JSON-style locator (``user.tags[0]``, ``$`` for root)."""
    if not path: return "$"
    parts: list[str] = []
    for segment in path:
        if isinstance(segment, int): parts.append(f"[{segment}]")
        elif parts: parts.append(f".{segment}")
        else: parts.append(str(segment))
    return "".join(parts)


@dataclass(frozen=True, slots=True)
class ValidationError:
    """A single path-tagged, coded validation failure.

    - path: field-name/index segments from the record root (empty for schema-level errors)
    - code: one of the ErrorCode vocabulary
    - message: resolved from a custom override, else the default template
    """
    path: Path
    code: ErrorCode
    message: str

    @classmethod
    def new(cls, path: Sequence[PathSegment] | PathSegment, code: ErrorCode | str, message: str) -> ValidationError:
        """Build an error, accepting a single segment or any sequence for the path."""
        if isinstance(path, (str, int)): path = (path,)
        return cls(path=tuple(path), code=ErrorCode(code), message=message)

    @property
    def location(self) -> str: return format_path(self.path)

    def with_path_prefix(self, prefix: Sequence[PathSegment]) -> ValidationError:
        if not prefix: return self
        return replace(self, path=(*prefix, *self.path))

    def with_code(self, code: ErrorCode) -> ValidationError:
        return self if code is self.code else replace(self, code=code)

    def format(self, style: str = "detailed") -> str:
        """Render as text: detailed, simple or minimal."""
        match style:
            case "minimal":
                return self.message
            case "simple":
                return f"{self.location}: {self.message}"
            case _:
                return f"{self.location}: {self.message} [{self.code.value}]"

    def to_dict(self) -> dict[str, Any]:
        return {"path": list(self.path), "code": self.code.value, "message": self.message}

    def __str__(self) -> str:
        return self.format("simple")


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success variant of Result monad."""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def unwrap_err(self) -> NoReturn:
        raise ValueError(f"Called unwrap_err on Ok: {self.value!r}")

    def map(self, f: Callable[[T], U]) -> Result[U, Any]:
        """Transform the success value."""
        return Ok(f(self.value))

    def map_err(self, f: Callable[[Any], F]) -> Result[T, F]:
        return self  # type: ignore

    def flat_map(self, f: Callable[[T], Result[U, Any]]) -> Result[U, Any]:
        """Chain operations that may fail."""
        return f(self.value)

    def and_then(self, f: Callable[[T], Result[U, Any]]) -> Result[U, Any]:
        return f(self.value)

    def match(self, ok: Callable[[T], U], err: Callable[[Any], U]) -> U:
        return ok(self.value)

    def __iter__(self) -> Iterator[T]:
        yield self.value


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure variant of Result monad.

    Inside the engine the payload is always a non-empty list of ValidationError;
    user-supplied validator functions may return Err with a plain reason.
    """
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def unwrap_err(self) -> E:
        return self.error

    def map(self, f: Callable[[Any], U]) -> Result[U, E]:
        return self  # type: ignore

    def map_err(self, f: Callable[[E], F]) -> Result[Any, F]:
        """Transform the error."""
        return Err(f(self.error))

    def flat_map(self, f: Callable[[Any], Result[U, E]]) -> Result[U, E]:
        return self  # type: ignore

    def and_then(self, f: Callable[[Any], Result[U, E]]) -> Result[U, E]:
        return self  # type: ignore

    def match(self, ok: Callable[[Any], U], err: Callable[[E], U]) -> U:
        return err(self.error)

    def __iter__(self) -> Iterator:
        return iter([])


Result = Union[Ok[T], Err[E]]
ValidationResult = Union[Ok[T], Err[list[ValidationError]]]


def collect_results(results: Sequence[Result[T, list[ValidationError]]]) -> Result[list[T], list[ValidationError]]:
    """Collect Results into a Result of list, concatenating every error list.

    Used wherever independent checks (fields, array elements, computed fields)
    must all be attempted before reporting.
    """
    values: list[T] = []
    errors: list[ValidationError] = []

    for r in results:
        match r:
            case Ok(v):
                values.append(v)
            case Err(e):
                errors.extend(e)

    if errors:
        return Err(errors)
    return Ok(values)
