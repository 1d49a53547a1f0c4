# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Schema adapters for tool and template parameters.

The dispatcher never talks to a validation library directly.  It depends on
the two-method :class:`SchemaAdapter` capability:

* ``describe()`` returns a JSON Schema document that is only ever advertised
  to clients (``tools/list``); it plays no part in validation.
* ``validate(raw)`` returns a :class:`ValidationOutcome` holding either the
  typed value or a list of :class:`ValidationIssue`.  It must not raise, and
  may be a coroutine function when the backing library is asynchronous.

Two adapters ship with the package: :class:`PydanticSchema` for anything a
:class:`pydantic.TypeAdapter` understands (models, ``TypedDict``, dataclasses)
and :class:`JSONSchema` for raw JSON Schema documents checked with
``jsonschema``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import jsonschema
from jsonschema.validators import validator_for
from pydantic import TypeAdapter, ValidationError
from pydantic.json_schema import JsonSchemaValue

from .coro import maybe_await


__all__ = [
    "JsonSchema",
    "SchemaError",
    "SchemaAdapter",
    "ValidationIssue",
    "ValidationOutcome",
    "PydanticSchema",
    "JSONSchema",
    "as_schema",
    "describe_schema",
    "validate_schema",
    "compress_schema",
]


JsonSchema = JsonSchemaValue

EMPTY_OBJECT_SCHEMA: JsonSchema = {"type": "object", "properties": {}}


class SchemaError(RuntimeError):
    """Raised when a schema cannot be built or described."""


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """One problem found in the caller's input."""

    message: str
    path: tuple[str | int, ...] = ()

    def __str__(self) -> str:
        if not self.path:
            return self.message
        return f"{'.'.join(str(part) for part in self.path)}: {self.message}"


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    """Result of :meth:`SchemaAdapter.validate`: a value or a list of issues."""

    value: Any = None
    issues: tuple[ValidationIssue, ...] = field(default=())

    @property
    def ok(self) -> bool:
        return not self.issues

    @classmethod
    def success(cls, value: Any) -> ValidationOutcome:
        return cls(value=value)

    @classmethod
    def failure(cls, *issues: ValidationIssue) -> ValidationOutcome:
        return cls(issues=issues or (ValidationIssue("invalid input"),))


@runtime_checkable
class SchemaAdapter(Protocol):
    """Capability any validation library can implement."""

    def describe(self) -> JsonSchema | Awaitable[JsonSchema]: ...

    def validate(self, raw: Any) -> ValidationOutcome | Awaitable[ValidationOutcome]: ...


class PydanticSchema:
    """Adapter over :class:`pydantic.TypeAdapter`.

    ``PydanticSchema(MyModel)`` validates raw arguments into a ``MyModel``
    instance; ``PydanticSchema(dict[str, int])`` yields a plain dict.
    """

    __slots__ = ("_adapter", "_annotation", "_described")

    def __init__(self, annotation: Any) -> None:
        try:
            self._adapter: TypeAdapter[Any] = TypeAdapter(annotation)
        except Exception as exc:
            raise SchemaError(f"Unable to build a validator for {annotation!r}") from exc
        self._annotation = annotation
        self._described: JsonSchema | None = None

    @property
    def annotation(self) -> Any:
        return self._annotation

    def describe(self) -> JsonSchema:
        if self._described is None:
            try:
                schema = self._adapter.json_schema(mode="validation")
            except Exception as exc:
                raise SchemaError(f"Unable to derive JSON schema for {self._annotation!r}") from exc
            self._described = compress_schema(schema)
        return _clone(self._described)

    def validate(self, raw: Any) -> ValidationOutcome:
        try:
            value = self._adapter.validate_python(raw)
        except ValidationError as exc:
            issues = [ValidationIssue(message=err["msg"], path=tuple(err["loc"])) for err in exc.errors()]
            return ValidationOutcome.failure(*issues)
        return ValidationOutcome.success(value)

    def __repr__(self) -> str:
        return f"PydanticSchema({self._annotation!r})"


class JSONSchema:
    """Adapter for a raw JSON Schema document, validated with ``jsonschema``.

    The validated value is the input itself; JSON Schema does not coerce.
    """

    __slots__ = ("_document", "_validator")

    def __init__(self, document: Mapping[str, Any]) -> None:
        self._document: JsonSchema = _clone(dict(document))
        cls = validator_for(self._document)
        try:
            cls.check_schema(self._document)
        except jsonschema.SchemaError as exc:
            raise SchemaError(f"Invalid JSON schema: {exc.message}") from exc
        self._validator = cls(self._document)

    def describe(self) -> JsonSchema:
        return _clone(self._document)

    def validate(self, raw: Any) -> ValidationOutcome:
        errors = sorted(self._validator.iter_errors(raw), key=lambda err: list(err.absolute_path))
        if not errors:
            return ValidationOutcome.success(raw)
        return ValidationOutcome.failure(
            *(ValidationIssue(message=err.message, path=tuple(err.absolute_path)) for err in errors)
        )

    def __repr__(self) -> str:
        return f"JSONSchema({self._document!r})"


def as_schema(obj: Any) -> SchemaAdapter | None:
    """Coerce a user-supplied parameter schema into a :class:`SchemaAdapter`.

    ``None`` stays ``None`` (the entry takes no structured arguments), mappings
    are JSON Schema documents, and anything else goes through pydantic.
    """
    if obj is None:
        return None
    if isinstance(obj, (PydanticSchema, JSONSchema)):
        return obj
    if isinstance(obj, Mapping):
        return JSONSchema(obj)
    if not isinstance(obj, type) and isinstance(obj, SchemaAdapter):
        return obj
    return PydanticSchema(obj)


async def describe_schema(schema: SchemaAdapter | None) -> JsonSchema | None:
    if schema is None:
        return None
    return await maybe_await(schema.describe())


async def validate_schema(schema: SchemaAdapter | None, raw: Any) -> ValidationOutcome:
    """Validate *raw* against *schema*; never raises.

    Without a schema the entry accepts no structured arguments and the value
    is always an empty dict.
    """
    if schema is None:
        return ValidationOutcome.success({})
    try:
        outcome = await maybe_await(schema.validate(raw))
    except Exception as exc:
        return ValidationOutcome.failure(ValidationIssue(message=f"validator failed: {exc}"))
    if not isinstance(outcome, ValidationOutcome):
        return ValidationOutcome.failure(ValidationIssue(message=f"validator returned {type(outcome).__name__}"))
    return outcome


def compress_schema(schema: JsonSchema, *, drop_titles: bool = True) -> JsonSchema:
    """Return a copy of *schema* without cosmetic ``title`` keys.

    Property names that happen to be called ``title`` are kept.
    """
    clone = _clone(schema)
    if drop_titles:
        _strip_titles(clone)
    return clone


def _clone(schema: Any) -> Any:
    if isinstance(schema, dict):
        return {key: _clone(value) for key, value in schema.items()}
    if isinstance(schema, list):
        return [_clone(item) for item in schema]
    return schema


def _strip_titles(node: Any) -> None:
    if isinstance(node, MutableMapping):
        node.pop("title", None)
        for key, value in node.items():
            if key == "properties" and isinstance(value, MutableMapping):
                for prop in value.values():
                    _strip_titles(prop)
            else:
                _strip_titles(value)
    elif isinstance(node, list):
        for item in node:
            _strip_titles(item)
