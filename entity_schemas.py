"""Per-kind entity validators used to build the default stack registry."""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple

from stackkit.issues import Issue, make_issue
from stackkit.suggest import is_snake_case


FIELD_TYPES = (
    "text",
    "textarea",
    "email",
    "url",
    "phone",
    "password",
    "markdown",
    "html",
    "richtext",
    "number",
    "currency",
    "percent",
    "date",
    "datetime",
    "time",
    "boolean",
    "toggle",
    "select",
    "multiselect",
    "radio",
    "checkboxes",
    "lookup",
    "master_detail",
    "tree",
    "image",
    "file",
    "avatar",
    "video",
    "audio",
    "formula",
    "summary",
    "autonumber",
    "location",
    "address",
    "code",
    "json",
    "color",
    "rating",
    "slider",
    "signature",
    "qrcode",
    "progress",
    "tags",
    "vector",
)
WORKFLOW_TRIGGER_TYPES = ("on_create", "on_update", "on_create_or_update", "on_delete", "schedule")
HOOK_EVENTS = (
    "beforeFind",
    "afterFind",
    "beforeFindOne",
    "afterFindOne",
    "beforeCount",
    "afterCount",
    "beforeAggregate",
    "afterAggregate",
    "beforeInsert",
    "afterInsert",
    "beforeUpdate",
    "afterUpdate",
    "beforeDelete",
    "afterDelete",
    "beforeUpdateMany",
    "afterUpdateMany",
    "beforeDeleteMany",
    "afterDeleteMany",
)
VIEW_DATA_PROVIDERS = ("object", "api", "value")
ACTION_TYPES = ("script", "url", "modal", "flow", "api")
FLOW_TYPES = ("autolaunched", "screen", "schedule")
DATASET_MODES = ("insert", "update", "upsert", "replace", "ignore")
MANIFEST_TYPES = ("app", "plugin", "driver", "module", "objectql", "gateway", "adapter", "theme", "agent", "library")
VERSION_RE = re.compile(r"^\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.-]+)?$")


def _ok(value: Any) -> dict:
    return {"ok": True, "value": value}


def _fail(issues: List[Issue]) -> dict:
    return {"ok": False, "issues": issues}


def _enum_issue(path: str, value: Any, allowed: Tuple[str, ...]) -> Issue:
    return make_issue(
        "INVALID_ENUM",
        f"Invalid option {value!r}: expected one of {', '.join(allowed)}",
        path,
        {"allowed": list(allowed), "received": value},
    )


def _identifier_issue(path: str, value: Any) -> Issue:
    return make_issue("INVALID_IDENTIFIER", f"Invalid name {value!r}: must be snake_case", path, {"received": value, "convention": "snake_case"})


def _check_identifier(issues: List[Issue], value: Any, path: str) -> None:
    if not isinstance(value, str) or not value:
        issues.append(make_issue("NAME_REQUIRED", "name is required", path))
    elif not is_snake_case(value):
        issues.append(_identifier_issue(path, value))


@dataclass(frozen=True)
class EntityRules:
    """Declarative rules for one entity kind."""

    identifier: str | None = "name"
    required: Tuple[str, ...] = ()
    enums: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    defaults: Dict[str, Any] = field(default_factory=dict)
    extra: Callable[[dict, List[Issue]], None] | None = None


def build_validator(rules: EntityRules) -> Callable[[Any], dict]:
    def validate(entity: Any) -> dict:
        if not isinstance(entity, dict):
            return _fail([make_issue("ENTITY_INVALID", "entry must be an object", None)])
        issues: List[Issue] = []
        if rules.identifier:
            _check_identifier(issues, entity.get(rules.identifier), rules.identifier)
        label = entity.get("label")
        if label is not None and not isinstance(label, str):
            issues.append(make_issue("FIELD_INVALID", "label must be a string", "label"))
        for key in rules.required:
            value = entity.get(key)
            if not isinstance(value, str) or not value:
                issues.append(make_issue("FIELD_REQUIRED", f"{key} is required", key))
        for key, allowed in rules.enums.items():
            if key not in entity:
                continue
            value = entity[key]
            if isinstance(value, list):
                for idx, item in enumerate(value):
                    if item not in allowed:
                        issues.append(_enum_issue(f"{key}[{idx}]", item, allowed))
            elif value not in allowed:
                issues.append(_enum_issue(key, value, allowed))
        if rules.extra is not None:
            rules.extra(entity, issues)
        if issues:
            return _fail(issues)
        value = copy.deepcopy(rules.defaults)
        value.update(entity)
        return _ok(value)

    return validate


def _check_object_fields(entity: dict, issues: List[Issue]) -> None:
    fields = entity.get("fields")
    if fields is None:
        return
    if not isinstance(fields, dict):
        issues.append(make_issue("FIELDS_INVALID", "fields must be a mapping of field name to definition", "fields"))
        return
    for fname, fdef in fields.items():
        fpath = f"fields.{fname}"
        if not is_snake_case(fname):
            issues.append(_identifier_issue(fpath, fname))
        if not isinstance(fdef, dict):
            issues.append(make_issue("FIELD_INVALID", "field definition must be an object", fpath))
            continue
        ftype = fdef.get("type")
        if ftype not in FIELD_TYPES:
            issues.append(_enum_issue(f"{fpath}.type", ftype, FIELD_TYPES))
        if ftype in ("lookup", "master_detail") and not isinstance(fdef.get("reference"), str):
            issues.append(make_issue("FIELD_REQUIRED", f"{ftype} field must declare reference", f"{fpath}.reference"))


def _check_extension(entity: dict, issues: List[Issue]) -> None:
    if not isinstance(entity.get("fields"), dict):
        issues.append(make_issue("FIELDS_INVALID", "fields must be a mapping of field name to definition", "fields"))
        return
    _check_object_fields(entity, issues)


def _check_hook_target(entity: dict, issues: List[Issue]) -> None:
    target = entity.get("object")
    if isinstance(target, str) and target:
        return
    if isinstance(target, list) and target and all(isinstance(t, str) and t for t in target):
        return
    issues.append(make_issue("FIELD_REQUIRED", "object must be an object name or a list of object names", "object"))


def _check_hook(entity: dict, issues: List[Issue]) -> None:
    _check_hook_target(entity, issues)
    events = entity.get("events")
    if not isinstance(events, list) or not events:
        issues.append(make_issue("FIELD_REQUIRED", "events must be a non-empty list", "events"))


def _check_view_data(data: Any, path: str, issues: List[Issue]) -> None:
    if not isinstance(data, dict):
        issues.append(make_issue("VIEW_DATA_INVALID", "data must be an object", path))
        return
    provider = data.get("provider")
    if provider not in VIEW_DATA_PROVIDERS:
        issues.append(_enum_issue(f"{path}.provider", provider, VIEW_DATA_PROVIDERS))
        return
    if provider == "object" and (not isinstance(data.get("object"), str) or not data.get("object")):
        issues.append(make_issue("FIELD_REQUIRED", "object provider requires an object name", f"{path}.object"))


def _check_view(entity: dict, issues: List[Issue]) -> None:
    for section in ("list", "form"):
        config = entity.get(section)
        if config is None:
            continue
        if not isinstance(config, dict):
            issues.append(make_issue("VIEW_INVALID", f"{section} must be an object", section))
            continue
        if "data" in config:
            _check_view_data(config.get("data"), f"{section}.data", issues)


def _check_dataset(entity: dict, issues: List[Issue]) -> None:
    records = entity.get("records")
    if records is not None and not isinstance(records, list):
        issues.append(make_issue("FIELD_INVALID", "records must be a list", "records"))


def _check_webhook(entity: dict, issues: List[Issue]) -> None:
    url = entity.get("url")
    if not isinstance(url, str) or not url.startswith(("http://", "https://")):
        issues.append(make_issue("FIELD_INVALID", "url must be an absolute http(s) URL", "url"))


RULES: Dict[str, EntityRules] = {
    "objects": EntityRules(defaults={"fields": {}}, extra=_check_object_fields),
    "objectExtensions": EntityRules(identifier=None, required=("extend",), extra=_check_extension),
    "apps": EntityRules(),
    "views": EntityRules(identifier=None, extra=_check_view),
    "pages": EntityRules(),
    "dashboards": EntityRules(),
    "reports": EntityRules(),
    "actions": EntityRules(enums={"type": ACTION_TYPES}),
    "themes": EntityRules(),
    "workflows": EntityRules(
        required=("objectName",),
        enums={"triggerType": WORKFLOW_TRIGGER_TYPES},
        defaults={"active": True, "actions": []},
    ),
    "approvals": EntityRules(required=("object",), defaults={"active": True}),
    "flows": EntityRules(enums={"type": FLOW_TYPES}),
    "roles": EntityRules(),
    "permissions": EntityRules(),
    "sharingRules": EntityRules(),
    "policies": EntityRules(),
    "apis": EntityRules(),
    "webhooks": EntityRules(extra=_check_webhook),
    "agents": EntityRules(),
    "ragPipelines": EntityRules(),
    "hooks": EntityRules(enums={"events": HOOK_EVENTS}, defaults={"priority": 100}, extra=_check_hook),
    "mappings": EntityRules(),
    "analyticsCubes": EntityRules(),
    "connectors": EntityRules(),
    "data": EntityRules(
        identifier=None,
        required=("object",),
        enums={"mode": DATASET_MODES},
        defaults={"mode": "upsert", "externalId": "name", "records": []},
        extra=_check_dataset,
    ),
    "datasources": EntityRules(required=("driver",)),
}


def validate_plugin(entity: Any) -> dict:
    return _ok(entity)


def validate_dev_plugin(entity: Any) -> dict:
    if isinstance(entity, str) and entity:
        return _ok(entity)
    if isinstance(entity, dict):
        return validate_manifest(entity)
    return _fail([make_issue("ENTITY_INVALID", "dev plugin must be a package name or a manifest", None)])


def validate_translation(entity: Any) -> dict:
    if not isinstance(entity, dict):
        return _fail([make_issue("ENTITY_INVALID", "translation bundle must be a mapping of locale to messages", None)])
    issues = []
    for locale, messages in entity.items():
        if not isinstance(messages, dict):
            issues.append(make_issue("FIELD_INVALID", "messages must be an object", str(locale)))
    return _fail(issues) if issues else _ok(entity)


def validate_manifest(entity: Any) -> dict:
    if not isinstance(entity, dict):
        return _fail([make_issue("MANIFEST_INVALID", "manifest must be an object", None)])
    issues: List[Issue] = []
    if not isinstance(entity.get("id"), str) or not entity.get("id"):
        issues.append(make_issue("FIELD_REQUIRED", "id is required", "id"))
    name = entity.get("name")
    if name is not None:
        _check_identifier(issues, name, "name")
    version = entity.get("version")
    if not isinstance(version, str) or not VERSION_RE.match(version):
        issues.append(make_issue("VERSION_INVALID", "version must be a semantic version (e.g. 1.0.0)", "version"))
    mtype = entity.get("type")
    if mtype not in MANIFEST_TYPES:
        issues.append(_enum_issue("type", mtype, MANIFEST_TYPES))
    return _fail(issues) if issues else _ok(dict(entity))


def validate_i18n(entity: Any) -> dict:
    if not isinstance(entity, dict):
        return _fail([make_issue("I18N_INVALID", "i18n must be an object", None)])
    issues: List[Issue] = []
    default_locale = entity.get("defaultLocale")
    if default_locale is not None and not isinstance(default_locale, str):
        issues.append(make_issue("FIELD_INVALID", "defaultLocale must be a string", "defaultLocale"))
    locales = entity.get("supportedLocales")
    if locales is not None and (not isinstance(locales, list) or not all(isinstance(loc, str) for loc in locales)):
        issues.append(make_issue("FIELD_INVALID", "supportedLocales must be a list of strings", "supportedLocales"))
    return _fail(issues) if issues else _ok(dict(entity))


def default_validators() -> Dict[str, Callable[[Any], dict]]:
    validators: Dict[str, Callable[[Any], dict]] = {name: build_validator(rules) for name, rules in RULES.items()}
    validators["plugins"] = validate_plugin
    validators["devPlugins"] = validate_dev_plugin
    validators["translations"] = validate_translation
    validators["manifest"] = validate_manifest
    validators["i18n"] = validate_i18n
    return validators
