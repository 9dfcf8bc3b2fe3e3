"""Collection table and validator registry for stack definitions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Tuple


ValidatorResult = Dict[str, Any]
Validator = Callable[[Any], ValidatorResult]


@dataclass(frozen=True)
class CollectionSpec:
    name: str
    key_field: str | None = "name"
    map_form: bool = True
    description: str = ""


# Canonical field order; composed and validated stacks follow it.
COLLECTIONS: Tuple[CollectionSpec, ...] = (
    CollectionSpec("objects", description="Business objects owned by the stack"),
    CollectionSpec("objectExtensions", key_field=None, map_form=False, description="Fields merged into objects owned elsewhere"),
    CollectionSpec("apps", description="Applications"),
    CollectionSpec("views", key_field=None, map_form=False, description="List and form views"),
    CollectionSpec("pages", description="Custom pages"),
    CollectionSpec("dashboards", description="Dashboards"),
    CollectionSpec("reports", description="Analytics reports"),
    CollectionSpec("actions", description="Global and object actions"),
    CollectionSpec("themes", description="UI themes"),
    CollectionSpec("workflows", description="Event-driven workflow rules"),
    CollectionSpec("approvals", description="Approval processes"),
    CollectionSpec("flows", description="Screen and autolaunched flows"),
    CollectionSpec("roles", description="Role hierarchy"),
    CollectionSpec("permissions", description="Permission sets and profiles"),
    CollectionSpec("sharingRules", description="Record sharing rules"),
    CollectionSpec("policies", description="Security and compliance policies"),
    CollectionSpec("apis", description="API endpoints"),
    CollectionSpec("webhooks", description="Outbound webhooks"),
    CollectionSpec("agents", description="AI agents"),
    CollectionSpec("ragPipelines", description="RAG pipelines"),
    CollectionSpec("hooks", description="Object lifecycle hooks"),
    CollectionSpec("mappings", description="Import/export mappings"),
    CollectionSpec("analyticsCubes", description="Analytics cubes"),
    CollectionSpec("connectors", description="External system connectors"),
    CollectionSpec("data", key_field=None, map_form=False, description="Seed datasets"),
    CollectionSpec("plugins", key_field=None, map_form=False, description="Plugins to load"),
    CollectionSpec("devPlugins", key_field=None, map_form=False, description="Development-only plugins"),
    CollectionSpec("datasources", description="External data connections"),
    CollectionSpec("translations", key_field=None, map_form=False, description="Translation bundles"),
)

RECORD_FIELDS: Tuple[str, ...] = ("manifest", "i18n")

COLLECTION_BY_NAME: Dict[str, CollectionSpec] = {spec.name: spec for spec in COLLECTIONS}
COLLECTION_NAMES: Tuple[str, ...] = tuple(spec.name for spec in COLLECTIONS)
MAP_FORM_FIELDS: Tuple[str, ...] = tuple(spec.name for spec in COLLECTIONS if spec.map_form)
CONCAT_FIELDS: Tuple[str, ...] = tuple(name for name in COLLECTION_NAMES if name != "objects")
STACK_KEYS: Tuple[str, ...] = RECORD_FIELDS + COLLECTION_NAMES

# Legacy plugin field names and their canonical collection.
ALIASES: Dict[str, str] = {"triggers": "hooks"}


def is_collection(field: str) -> bool:
    return field in COLLECTION_BY_NAME


class ValidatorRegistry:
    """Static table from stack field to entity validator.

    Every collection and record field must have a validator; adding a new
    collection kind is a new table row, not a new branch.
    """

    def __init__(self, validators: Dict[str, Validator]) -> None:
        missing = [name for name in STACK_KEYS if name not in validators]
        if missing:
            raise ValueError(f"validator registry missing fields: {', '.join(missing)}")
        unknown = sorted(set(validators) - set(STACK_KEYS))
        if unknown:
            raise ValueError(f"validator registry has unknown fields: {', '.join(unknown)}")
        self._validators: Dict[str, Validator] = dict(validators)

    def get(self, field: str) -> Validator:
        return self._validators[field]

    def collections(self) -> Iterator[Tuple[CollectionSpec, Validator]]:
        for spec in COLLECTIONS:
            yield spec, self._validators[spec.name]

    def records(self) -> List[Tuple[str, Validator]]:
        return [(name, self._validators[name]) for name in RECORD_FIELDS]

    def replace(self, field: str, validator: Validator) -> "ValidatorRegistry":
        """Return a new registry with one validator swapped out."""
        if field not in self._validators:
            raise KeyError(field)
        validators = dict(self._validators)
        validators[field] = validator
        return ValidatorRegistry(validators)
