# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

"""JSON-path style field extraction over decoded request bodies.

Supported forms::

    $.field
    $.parent.child
    $.items[*]
    $.items[*].id
    $.transaction.accounts[*].owner.id

A missing field is an error, except when the missing field name contains
``Used`` or ``Exists``: those read as ``False`` so rules can ask whether an
optional marker was sent.
"""

from typing import Any, NamedTuple

from authz_gateway.authz.errors import MalformedPathError, MissingFieldError, TypeMismatchError

WILDCARD = "[*]"
EXISTENCE_MARKERS = ("Used", "Exists")


class ParsedPath(NamedTuple):
    fields: list[str]
    # Set only for wildcard paths: fields resolved on every array element
    element_fields: list[str] | None


def _strip_root(json_path: str) -> str:
    if json_path.startswith("$."):
        return json_path[2:]
    return json_path.removeprefix("$")


def _split_fields(json_path: str, dotted: str) -> list[str]:
    fields = [part for part in dotted.split(".") if part]
    for field in fields:
        if "[" in field or "]" in field:
            raise MalformedPathError(json_path, f"unsupported selector in {field!r}")
    return fields


def parse_path(json_path: str) -> ParsedPath:
    path = _strip_root(json_path)
    if WILDCARD not in path:
        return ParsedPath(_split_fields(json_path, path), None)

    parts = path.split(WILDCARD)
    if len(parts) != 2:
        raise MalformedPathError(json_path, "only one [*] wildcard is supported")
    prefix, suffix = parts
    if suffix and not suffix.startswith("."):
        raise MalformedPathError(json_path, f"expected '.' after {WILDCARD}")
    return ParsedPath(_split_fields(json_path, prefix), _split_fields(json_path, suffix))


def _resolve(data: Any, fields: list[str], json_path: str) -> Any:
    current = data
    for field in fields:
        if not isinstance(current, dict):
            raise TypeMismatchError(
                json_path, f"cannot traverse into {type(current).__name__} at {field!r}"
            )
        if field not in current:
            if any(marker in field for marker in EXISTENCE_MARKERS):
                return False
            raise MissingFieldError(json_path, field)
        current = current[field]
    return current


def extract(data: Any, json_path: str) -> Any:
    """Extract the value addressed by ``json_path`` from ``data``.

    Wildcard paths return a list with one entry per array element, in order.
    Raises an ExtractionError subclass when the path does not resolve.
    """
    parsed = parse_path(json_path)
    value = _resolve(data, parsed.fields, json_path)
    if parsed.element_fields is None:
        return value

    if not isinstance(value, list):
        raise TypeMismatchError(
            json_path, f"{'.'.join(parsed.fields) or '$'} is {type(value).__name__}, not an array"
        )
    if not parsed.element_fields:
        return list(value)
    return [_resolve(item, parsed.element_fields, json_path) for item in value]
