"""Tests for placeholder rendering and subject overrides."""
from __future__ import annotations

from lms_api.services.template_engine import render_email_layout
from lms_api.services.template_parser import parse_subject_params, render, resolve_subject


def test_render_replaces_all_placeholder_styles():
    content = "{{ firstName }} [lastName] {email}"
    variables = {"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com"}

    assert render(content, variables) == "Ada Lovelace ada@example.com"


def test_render_tolerates_whitespace_inside_double_braces():
    assert render("Hi {{firstName}} / {{  firstName  }}", {"firstName": "Ada"}) == "Hi Ada / Ada"


def test_render_leaves_unknown_placeholders_verbatim():
    content = "Hello {{firstName}}, see [module_name] and {missing}"

    assert render(content, {"firstName": "Ada"}) == "Hello Ada, see [module_name] and {missing}"


def test_render_with_empty_variables_is_identity():
    content = "Hello [name] {{x}} {y}"

    assert render(content, {}) == content


def test_render_keeps_placeholder_for_none_value():
    assert render("Hi {{firstName}}", {"firstName": None}) == "Hi {{firstName}}"


def test_render_stringifies_values():
    assert render("Seats: {seats}", {"seats": 5}) == "Seats: 5"


def test_render_does_not_rerender_substituted_values():
    variables = {"name": "{email}", "email": "ada@example.com", "first": "[last]", "last": "Lovelace"}

    assert render("Hi [name]", variables) == "Hi {email}"
    assert render("{{first}} {email}", variables) == "[last] ada@example.com"


def test_parse_subject_params_skips_incomplete_pairs():
    params = parse_subject_params("name: Bob, broken, : nokey, novalue:, url: https://x.test/a")

    assert params == {"name": "Bob", "url": "https://x.test/a"}


def test_resolve_subject_without_override_uses_template_subject():
    assert resolve_subject("Hello [name]") == "Hello [name]"
    assert resolve_subject("Hello [name]", "") == "Hello [name]"


def test_resolve_subject_with_params_renders_template_subject():
    assert resolve_subject("Hello [name]", "name: Bob") == "Hello Bob"


def test_resolve_subject_with_plain_override_is_literal():
    assert resolve_subject("Hello [name]", "Quarterly update") == "Quarterly update"


def test_resolve_subject_leaves_unsupplied_keys_for_recipient_rendering():
    subject = resolve_subject("[greeting] {{firstName}}", "greeting: Welcome")

    assert subject == "Welcome {{firstName}}"
    assert render(subject, {"firstName": "Ada"}) == "Welcome Ada"


def test_email_layout_embeds_body_as_html():
    html = render_email_layout(subject="Hi <Ada>", body="<p>Body</p>", app_name="LMS")

    assert "<p>Body</p>" in html
    assert "Hi &lt;Ada&gt;" in html
    assert "LMS" in html
