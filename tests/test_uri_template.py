# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""URI template matching and expansion."""

from __future__ import annotations

import pytest

from catalogmcp.utils.uri_template import (
    UriTemplate,
    UriTemplateError,
    compile_template,
    fill_template,
    match_template,
    normalize_template,
    normalize_uri,
)


def test_simple_variable_matches_one_segment() -> None:
    template = UriTemplate("/items/{id}")

    assert template.match("/items/42") == {"id": "42"}
    assert template.match("/items/42/extra") is None
    assert template.match("/items/") is None
    assert template.match("/other/42") is None


def test_multiple_variables() -> None:
    variables = match_template("neon://projects/{project_id}/branches/{branch_id}", "neon://projects/p1/branches/b2")
    assert variables == {"project_id": "p1", "branch_id": "b2"}


def test_reserved_variable_spans_segments() -> None:
    template = UriTemplate("file:///{+path}")

    assert template.match("file:///docs/guide/intro.md") == {"path": "docs/guide/intro.md"}
    assert template.fill({"path": "docs/guide/intro.md"}) == "file:///docs/guide/intro.md"


def test_optional_path_segment() -> None:
    template = UriTemplate("/items{/id}")

    assert template.match("/items") == {}
    assert template.match("/items/7") == {"id": "7"}
    assert template.fill({}) == "/items"
    assert template.fill({"id": "7"}) == "/items/7"


def test_query_expression() -> None:
    template = UriTemplate("/search{?q,limit}")

    assert template.match("/search") == {}
    assert template.match("/search?q=red%20shoes&limit=5") == {"q": "red shoes", "limit": "5"}
    assert template.match("/search?limit=5&unknown=1") == {"limit": "5"}
    assert template.fill({"q": "red shoes"}) == "/search?q=red%20shoes"


def test_match_decodes_and_fill_encodes() -> None:
    template = UriTemplate("/items/{id}")

    assert template.match("/items/a%2Fb") == {"id": "a/b"}
    assert template.fill({"id": "a/b"}) == "/items/a%2Fb"


@pytest.mark.parametrize(
    ("pattern", "uri"),
    [
        ("/items/{id}", "/items/42"),
        ("/items/{id}", "/items/caf%C3%A9"),
        ("/items/{id}", "/items/a+b"),
        ("repo://{owner}/{name}/readme", "repo://octo/hello%20world/readme"),
        ("file:///{+path}", "file:///a/b%3Fc"),
        ("/items{/id}{?view}", "/items/9?view=full"),
        ("/search{?q}", "/search?q=a+b"),
    ],
)
def test_match_fill_match_is_stable(pattern: str, uri: str) -> None:
    template = UriTemplate(pattern)
    variables = template.match(uri)

    assert variables is not None
    assert template.match(template.fill(variables)) == variables


def test_fill_rejects_missing_required_value() -> None:
    with pytest.raises(UriTemplateError):
        fill_template("/items/{id}", {})
    with pytest.raises(UriTemplateError):
        fill_template("/items/{id}", {"id": ""})


@pytest.mark.parametrize(
    "pattern",
    [
        "/items/{id",
        "/items/id}",
        "/items/{id}/{id}",
        "/items/{#frag}",
        "/items/{a,b}",
        "/items/{}",
        "/search{?q}/tail",
        "/search{?q}{id}",
    ],
)
def test_malformed_templates_are_rejected(pattern: str) -> None:
    with pytest.raises(UriTemplateError):
        UriTemplate(pattern)


def test_literal_characters_are_escaped() -> None:
    template = UriTemplate("/v1.0/{name}")

    assert template.match("/v1x0/thing") is None
    assert template.match("/v1.0/thing") == {"name": "thing"}


def test_compile_template_is_cached_and_comparable() -> None:
    first = compile_template("/items/{id}")

    assert compile_template("/items/{id}") is first
    assert first == UriTemplate("/items/{id}")
    assert first.variable_names == ("id",)
    assert first.pattern == "/items/{id}"


@pytest.mark.parametrize(
    ("uri", "expected"),
    [
        ("https://example.com", "https://example.com/"),
        ("https://Example.com/docs", "https://example.com/docs"),
        ("https://x/y", "https://x/y"),
        ("catalog://status", "catalog://status"),
        ("/items/42", "/items/42"),
    ],
)
def test_normalize_uri_matches_protocol_form(uri: str, expected: str) -> None:
    assert normalize_uri(uri) == expected
    assert normalize_uri(expected) == expected


@pytest.mark.parametrize(
    ("pattern", "expected"),
    [
        ("https://Docs.Example.com/pages/{slug}", "https://docs.example.com/pages/{slug}"),
        ("catalog://items/{id}", "catalog://items/{id}"),
        ("https://example.com{/id}", "https://example.com{/id}"),
        ("{+uri}", "{+uri}"),
        ("/items/{id}", "/items/{id}"),
    ],
)
def test_normalize_template_rewrites_only_the_literal_head(pattern: str, expected: str) -> None:
    assert normalize_template(pattern) == expected
