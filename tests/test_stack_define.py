import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from stackkit.errors import CrossReferenceError, NormalizationError, SchemaValidationError, StackError
from stack_collections import ValidatorRegistry
from stack_define import DEFAULT_REGISTRY, define_stack
import entity_schemas


def _crm_stack() -> dict:
    return {
        "manifest": {"id": "com.example.crm", "name": "crm", "version": "1.2.0", "type": "app"},
        "objects": {
            "lead": {"label": "Lead", "fields": {"email": {"type": "email"}}},
            "account": {"label": "Account"},
        },
        "workflows": {"lead_intake": {"objectName": "lead", "triggerType": "on_create"}},
        "roles": [{"name": "sales_rep", "label": "Sales rep"}],
    }


class TestDefineStack(unittest.TestCase):
    def test_map_form_becomes_named_list(self) -> None:
        stack = define_stack(_crm_stack())
        self.assertEqual([o["name"] for o in stack["objects"]], ["lead", "account"])
        self.assertEqual(stack["objects"][1]["fields"], {})
        self.assertEqual(stack["workflows"][0]["name"], "lead_intake")
        self.assertTrue(stack["workflows"][0]["active"])

    def test_map_and_array_forms_agree(self) -> None:
        as_map = define_stack({"objects": {"lead": {"label": "Lead"}}})
        as_list = define_stack({"objects": [{"name": "lead", "label": "Lead"}]})
        self.assertEqual(as_map, as_list)

    def test_input_not_mutated(self) -> None:
        raw = _crm_stack()
        before = repr(raw)
        define_stack(raw)
        self.assertEqual(repr(raw), before)

    def test_unresolved_workflow_object(self) -> None:
        raw = {
            "objects": [{"name": "lead"}],
            "workflows": [{"name": "w", "objectName": "nonexistent", "triggerType": "on_create"}],
        }
        with self.assertRaises(CrossReferenceError) as ctx:
            define_stack(raw)
        report = str(ctx.exception)
        self.assertTrue(report.startswith("defineStack cross-reference validation failed (1 issue):"))
        self.assertIn("'w'", report)
        self.assertIn("'nonexistent'", report)
        self.assertEqual(ctx.exception.issues[0]["code"], "REFERENCE_NOT_FOUND")

    def test_no_objects_skips_reference_check(self) -> None:
        raw = {"workflows": [{"name": "w", "objectName": "nonexistent", "triggerType": "on_create"}]}
        stack = define_stack(raw)
        self.assertEqual(stack["workflows"][0]["objectName"], "nonexistent")

    def test_schema_failure_is_aggregated(self) -> None:
        raw = {
            "objects": [{"name": "Lead"}],
            "workflows": [{"name": "w", "objectName": "ghost", "triggerType": "on_creat"}],
        }
        with self.assertRaises(SchemaValidationError) as ctx:
            define_stack(raw)
        report = str(ctx.exception)
        self.assertTrue(report.startswith("defineStack validation failed (2 issues):"))
        self.assertIn("✗ objects[0].name:", report)
        self.assertIn("✗ workflows[0].triggerType:", report)
        self.assertIn("→ Did you mean 'on_create'?", report)
        self.assertEqual(ctx.exception.code, "STACK_SCHEMA_INVALID")

    def test_report_is_deterministic(self) -> None:
        raw = {"objects": [{"name": "Lead"}, {"name": "x", "fields": {"a": {"type": "nope"}}}]}
        reports = []
        for _ in range(2):
            with self.assertRaises(SchemaValidationError) as ctx:
                define_stack(raw)
            reports.append(str(ctx.exception))
        self.assertEqual(reports[0], reports[1])

    def test_unknown_keys_are_stripped(self) -> None:
        raw = {"objects": [{"name": "lead"}], "triggers": [{"name": "legacy"}]}
        stack = define_stack(raw)
        self.assertNotIn("triggers", stack)
        self.assertEqual([o["name"] for o in stack["objects"]], ["lead"])

    def test_non_strict_only_normalizes(self) -> None:
        raw = {
            "objects": {"Lead": {}},
            "workflows": [{"name": "w", "objectName": "nonexistent", "triggerType": "bogus"}],
        }
        stack = define_stack(raw, strict=False)
        self.assertEqual(stack["objects"], [{"name": "Lead"}])
        self.assertEqual(stack["workflows"], raw["workflows"])

    def test_normalization_failure(self) -> None:
        with self.assertRaises(NormalizationError) as ctx:
            define_stack({"objects": "lead"})
        self.assertIsInstance(ctx.exception, StackError)
        self.assertTrue(str(ctx.exception).startswith("defineStack normalization failed (1 issue):"))

    def test_custom_registry(self) -> None:
        def no_admins(entity):
            if entity.get("name") == "admin":
                return {"ok": False, "issues": [{"code": "RESERVED", "message": "admin is reserved", "path": "name", "detail": None}]}
            return {"ok": True, "value": entity}

        registry = DEFAULT_REGISTRY.replace("roles", no_admins)
        with self.assertRaises(SchemaValidationError) as ctx:
            define_stack({"roles": [{"name": "admin"}]}, registry=registry)
        self.assertEqual(ctx.exception.issues[0]["path"], "roles[0].name")
        self.assertEqual(define_stack({"roles": [{"name": "admin"}]})["roles"], [{"name": "admin"}])

    def test_default_registry_covers_every_kind(self) -> None:
        registry = ValidatorRegistry(entity_schemas.default_validators())
        self.assertEqual(len(list(registry.collections())), len(list(DEFAULT_REGISTRY.collections())))


if __name__ == "__main__":
    unittest.main()
