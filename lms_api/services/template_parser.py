"""Placeholder substitution for stored email templates.

Stored templates mix three placeholder styles: ``{{key}}`` in bodies,
``[key]`` and ``{key}`` in subjects. Placeholders whose key is not supplied are
left exactly as written so a partially configured template stays readable.
"""
from __future__ import annotations

import re
from typing import Any, Mapping

# One pass over all three styles so a substituted value is never rendered again.
_PLACEHOLDER = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}|\[([^\[\]]+)\]|\{([^{}]+)\}")


def render(content: str, variables: Mapping[str, Any]) -> str:
    """Replace every known placeholder in ``content``; unknown ones are kept verbatim."""

    def replace(match: re.Match[str]) -> str:
        key = match.group(1) or match.group(2) or match.group(3)
        if key in variables and variables[key] is not None:
            return str(variables[key])
        return match.group(0)

    return _PLACEHOLDER.sub(replace, content)


def parse_subject_params(custom_subject: str) -> dict[str, str]:
    """Parse ``key: value, key2: value2`` into a dict, skipping incomplete pairs."""

    params: dict[str, str] = {}
    for pair in custom_subject.split(","):
        key, _, value = pair.partition(":")
        key, value = key.strip(), value.strip()
        if key and value:
            params[key] = value
    return params


def resolve_subject(template_subject: str, custom_subject: str | None = None) -> str:
    """Pick the subject for a scheduled email.

    A custom subject containing ``:`` is a list of overrides applied to the
    template subject; any other custom subject replaces it literally.
    """

    if not custom_subject:
        return template_subject
    if ":" in custom_subject:
        return render(template_subject, parse_subject_params(custom_subject))
    return custom_subject
