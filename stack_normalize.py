"""Stack normalization for array and map collection shapes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Union

from stackkit.errors import NormalizationError
from stackkit.issues import make_issue

from stack_collections import ALIASES, COLLECTION_BY_NAME, COLLECTIONS, MAP_FORM_FIELDS


logger = logging.getLogger("stackkit.normalize")

NAME_POLICIES = {"key", "error"}


@dataclass(frozen=True)
class ArrayForm:
    items: list

    def to_array(self, field: str, key_field: str | None, on_name_mismatch: str) -> list:
        return list(self.items)


@dataclass(frozen=True)
class MapForm:
    entries: dict

    def to_array(self, field: str, key_field: str | None, on_name_mismatch: str) -> list:
        items = []
        for key, entry in self.entries.items():
            if not isinstance(entry, dict) or key_field is None:
                items.append(entry)
                continue
            explicit = entry.get(key_field)
            if explicit is not None and explicit != key and on_name_mismatch == "error":
                raise _error(
                    field,
                    "NAME_KEY_MISMATCH",
                    f"'{field}' entry '{key}' declares {key_field} '{explicit}'",
                    f"{field}.{key}.{key_field}",
                    {"key": key, "declared": explicit},
                )
            item = dict(entry)
            item[key_field] = key
            items.append(item)
        return items


CollectionInput = Union[ArrayForm, MapForm]


def _error(field: str, code: str, message: str, path: str, detail: dict | None = None) -> NormalizationError:
    return NormalizationError.from_issues([make_issue(code, message, path, detail)], field_name=field)


def read_collection(field: str, value: Any) -> CollectionInput:
    """Resolve a raw collection value into its input form."""
    spec = COLLECTION_BY_NAME[field]
    if isinstance(value, (list, tuple)):
        return ArrayForm(list(value))
    if isinstance(value, dict):
        if not spec.map_form:
            raise _error(
                field,
                "COLLECTION_MAP_UNSUPPORTED",
                f"'{field}' must be a list; map form is not supported for this collection",
                field,
            )
        return MapForm(value)
    raise _error(
        field,
        "COLLECTION_SHAPE_INVALID",
        f"'{field}' must be a list or a mapping of name to entry, got {type(value).__name__}",
        field,
        {"received_type": type(value).__name__},
    )


def normalize_collection(field: str, value: Any, on_name_mismatch: str = "key") -> Any:
    if value is None:
        return None
    spec = COLLECTION_BY_NAME[field]
    return read_collection(field, value).to_array(field, spec.key_field, on_name_mismatch)


def normalize_stack(raw: dict, on_name_mismatch: str = "key") -> dict:
    """Return a copy of ``raw`` with every collection in array form.

    Map-form collections become one entry per key with the key written to the
    entry's ``name``. By default the key wins over a conflicting explicit
    name; ``on_name_mismatch="error"`` rejects the conflict instead.
    """
    if on_name_mismatch not in NAME_POLICIES:
        raise ValueError(f"on_name_mismatch must be one of {sorted(NAME_POLICIES)}")
    if not isinstance(raw, dict):
        raise NormalizationError.from_issues(
            [make_issue("STACK_SHAPE_INVALID", f"stack must be a mapping, got {type(raw).__name__}", None)]
        )
    result = dict(raw)
    converted = []
    for spec in COLLECTIONS:
        if spec.name not in result:
            continue
        value = result[spec.name]
        result[spec.name] = normalize_collection(spec.name, value, on_name_mismatch)
        if isinstance(value, dict):
            converted.append(spec.name)
    if converted:
        logger.debug("stack_normalized map_fields=%s", ",".join(converted))
    return result


def normalize_plugin_metadata(metadata: dict) -> dict:
    """Normalize third-party plugin metadata to the canonical stack shape.

    Legacy aliases are folded into their canonical collection (alias entries
    follow the canonical ones), map-form collections become arrays, and nested
    plugin mappings are normalized recursively.
    """
    result = dict(metadata)
    for alias, canonical in ALIASES.items():
        if alias not in result:
            continue
        alias_items = normalize_collection(canonical, result.pop(alias))
        if not isinstance(alias_items, list):
            continue
        existing = normalize_collection(canonical, result.get(canonical))
        result[canonical] = (existing or []) + alias_items
        logger.debug("plugin_alias_resolved alias=%s canonical=%s count=%s", alias, canonical, len(alias_items))

    for field in MAP_FORM_FIELDS:
        if field in result:
            result[field] = normalize_collection(field, result[field])

    plugins = result.get("plugins")
    if isinstance(plugins, list):
        nested: List[Any] = []
        for plugin in plugins:
            nested.append(normalize_plugin_metadata(plugin) if isinstance(plugin, dict) else plugin)
        result["plugins"] = nested
    return result


def collection_items(stack: Dict[str, Any], field: str) -> list:
    value = stack.get(field) if isinstance(stack, dict) else None
    return value if isinstance(value, list) else []
