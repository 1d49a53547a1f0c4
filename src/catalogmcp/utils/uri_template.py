# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Matching and expansion for resource URI templates.

Supports the subset of RFC 6570 that resource catalogs use in practice:

* ``{var}``    one segment; stops at ``/``, ``?`` and ``#``.
* ``{+var}``   reserved expansion; may span ``/``.
* ``{/var}``   optional path segment, written as ``/value`` when present.
* ``{?a,b}``   optional query parameters; must be the last expression.

:meth:`UriTemplate.match` percent-decodes the values it extracts and
:meth:`UriTemplate.fill` percent-encodes them again, so for any mapping ``v``
returned by ``match``, ``match(fill(v)) == v``.

Resource URIs travel as pydantic ``AnyUrl`` values, which lowercase the host
and give a bare authority a trailing ``/``.  :func:`normalize_uri` and
:func:`normalize_template` put registered URIs into that same form.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
import re
from typing import Annotated, Any, Final
from urllib.parse import parse_qsl, quote, unquote

from pydantic import AnyUrl, TypeAdapter, UrlConstraints, ValidationError


__all__ = [
    "UriTemplate",
    "UriTemplateError",
    "compile_template",
    "match_template",
    "fill_template",
    "normalize_template",
    "normalize_uri",
]


_EXPRESSION: Final = re.compile(r"\{([^{}]*)\}")
_VARNAME: Final = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.]*$")
_OPERATORS: Final[frozenset[str]] = frozenset({"", "+", "/", "?"})
_RESERVED_SAFE: Final[str] = "/:@!$&'()*+,;="

# Same constraints as the URI fields of the MCP wire models.
_PROTOCOL_URI: Final = TypeAdapter(Annotated[AnyUrl, UrlConstraints(host_required=False)])


class UriTemplateError(ValueError):
    """Raised for malformed templates or values that cannot be expanded."""


@dataclass(frozen=True, slots=True)
class _Expression:
    operator: str
    names: tuple[str, ...]
    group: str


class UriTemplate:
    """A compiled URI template."""

    __slots__ = ("_parts", "_pattern", "_regex", "_variable_names")

    def __init__(self, pattern: str) -> None:
        self._pattern = pattern
        self._parts: list[str | _Expression] = []
        regex: list[str] = []
        seen: list[str] = []
        position = 0
        query_seen = False

        for index, found in enumerate(_EXPRESSION.finditer(pattern)):
            literal = pattern[position : found.start()]
            if "{" in literal or "}" in literal:
                raise UriTemplateError(f"{pattern!r}: unbalanced braces")
            if literal:
                if query_seen:
                    raise UriTemplateError(f"{pattern!r}: a query expression must end the template")
                self._parts.append(literal)
                regex.append(re.escape(literal))

            expression = self._parse_expression(found.group(1), f"g{index}")
            if query_seen:
                raise UriTemplateError(f"{pattern!r}: a query expression must end the template")
            for name in expression.names:
                if name in seen:
                    raise UriTemplateError(f"{pattern!r}: variable {name!r} appears twice")
                seen.append(name)

            self._parts.append(expression)
            regex.append(_expression_regex(expression))
            query_seen = expression.operator == "?"
            position = found.end()

        tail = pattern[position:]
        if "{" in tail or "}" in tail:
            raise UriTemplateError(f"{pattern!r}: unbalanced braces")
        if tail:
            if query_seen:
                raise UriTemplateError(f"{pattern!r}: a query expression must end the template")
            self._parts.append(tail)
            regex.append(re.escape(tail))

        self._regex = re.compile("".join(regex))
        self._variable_names = tuple(seen)

    @property
    def pattern(self) -> str:
        return self._pattern

    @property
    def variable_names(self) -> tuple[str, ...]:
        return self._variable_names

    def match(self, uri: str) -> dict[str, str] | None:
        """Return the variables bound by *uri*, or ``None`` when it does not fit."""
        found = self._regex.fullmatch(uri)
        if found is None:
            return None

        variables: dict[str, str] = {}
        for part in self._parts:
            if isinstance(part, str):
                continue
            raw = found.group(part.group)
            if raw is None:
                continue
            if part.operator == "?":
                for key, value in parse_qsl(raw, keep_blank_values=True):
                    if key in part.names and key not in variables:
                        variables[key] = value
            else:
                variables[part.names[0]] = unquote(raw)
        return variables

    def fill(self, variables: Mapping[str, Any]) -> str:
        """Expand the template with *variables*."""
        out: list[str] = []
        for part in self._parts:
            if isinstance(part, str):
                out.append(part)
                continue

            if part.operator == "?":
                pairs = [
                    f"{quote(name, safe='')}={quote(str(variables[name]), safe='')}"
                    for name in part.names
                    if variables.get(name) is not None
                ]
                if pairs:
                    out.append("?" + "&".join(pairs))
                continue

            name = part.names[0]
            value = variables.get(name)
            if part.operator == "/":
                if value is not None:
                    out.append("/" + quote(str(value), safe=""))
                continue
            if value is None or str(value) == "":
                raise UriTemplateError(f"{self._pattern!r}: missing value for {name!r}")
            safe = _RESERVED_SAFE if part.operator == "+" else ""
            out.append(quote(str(value), safe=safe))
        return "".join(out)

    def _parse_expression(self, body: str, group: str) -> _Expression:
        operator = body[:1] if body[:1] in {"+", "/", "?", "#", ".", ";", "&"} else ""
        if operator not in _OPERATORS:
            raise UriTemplateError(f"{self._pattern!r}: operator {operator!r} is not supported")
        names = tuple(name.strip() for name in body[len(operator) :].split(","))
        if not names or any(not _VARNAME.match(name) for name in names):
            raise UriTemplateError(f"{self._pattern!r}: invalid expression {{{body}}}")
        if operator != "?" and len(names) > 1:
            raise UriTemplateError(f"{self._pattern!r}: {{{body}}} binds more than one variable")
        return _Expression(operator=operator, names=names, group=group)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, UriTemplate) and other._pattern == self._pattern

    def __hash__(self) -> int:
        return hash(self._pattern)

    def __repr__(self) -> str:
        return f"UriTemplate({self._pattern!r})"


def _expression_regex(expression: _Expression) -> str:
    group = expression.group
    if expression.operator == "+":
        return f"(?P<{group}>[^?#]+)"
    if expression.operator == "/":
        return f"(?:/(?P<{group}>[^/?#]+))?"
    if expression.operator == "?":
        return f"(?:\\?(?P<{group}>[^#]*))?"
    return f"(?P<{group}>[^/?#]+)"


@lru_cache(maxsize=256)
def compile_template(pattern: str) -> UriTemplate:
    return UriTemplate(pattern)


def match_template(pattern: str, uri: str) -> dict[str, str] | None:
    return compile_template(pattern).match(uri)


def fill_template(pattern: str, variables: Mapping[str, Any]) -> str:
    return compile_template(pattern).fill(variables)


def normalize_uri(uri: str) -> str:
    """Return *uri* exactly as it reads after a protocol round trip.

    Strings that do not parse as absolute URIs are returned unchanged.
    """
    try:
        return str(_PROTOCOL_URI.validate_python(uri))
    except ValidationError:
        return uri


def normalize_template(pattern: str) -> str:
    """Normalize the literal ``scheme://authority/`` head of *pattern*.

    Only a head that ends in ``/`` before the first expression is rewritten;
    the rest of the template is left alone.
    """
    found = _EXPRESSION.search(pattern)
    literal = pattern if found is None else pattern[: found.start()]
    scheme, separator, rest = literal.partition("://")
    if not separator or "/" not in rest:
        return pattern
    head_end = len(scheme) + len(separator) + rest.index("/") + 1
    return normalize_uri(pattern[:head_end]) + pattern[head_end:]
