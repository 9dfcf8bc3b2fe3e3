import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from fastapi.testclient import TestClient

os.environ.pop("STACKKIT_CORS_ORIGINS", None)

import app.main as main


class TestStacksApi(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(main.app)

    def test_health(self) -> None:
        res = self.client.get("/health")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"ok": True})

    def test_normalize_returns_stack(self) -> None:
        res = self.client.post("/stacks/normalize", json={"stack": {"objects": {"lead": {"label": "Lead"}}}})
        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertTrue(body["ok"])
        self.assertEqual(body["data"], {"stack": {"objects": [{"label": "Lead", "name": "lead"}]}})

    def test_normalize_requires_stack(self) -> None:
        res = self.client.post("/stacks/normalize", json={"stack": []})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["errors"][0]["code"], "STACK_REQUIRED")

    def test_define_ok(self) -> None:
        res = self.client.post(
            "/stacks/define",
            json={"stack": {"objects": {"lead": {}}, "workflows": {"intake": {"objectName": "lead", "triggerType": "on_create"}}}},
        )
        self.assertEqual(res.status_code, 200)
        stack = res.json()["data"]["stack"]
        self.assertEqual(stack["workflows"][0]["name"], "intake")
        self.assertEqual(res.json()["warnings"], [])

    def test_define_validation_error(self) -> None:
        res = self.client.post("/stacks/define", json={"stack": {"objects": [{"name": "Lead"}]}})
        self.assertEqual(res.status_code, 400)
        body = res.json()
        self.assertFalse(body["ok"])
        self.assertEqual(body["code"], "STACK_SCHEMA_INVALID")
        self.assertEqual(body["errors"][0]["path"], "objects[0].name")
        self.assertTrue(body["report"].startswith("defineStack validation failed (1 issue):"))

    def test_define_cross_reference_error(self) -> None:
        stack = {"objects": [{"name": "lead"}], "workflows": [{"name": "w", "objectName": "nonexistent", "triggerType": "on_create"}]}
        res = self.client.post("/stacks/define", json={"stack": stack})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["code"], "STACK_CROSS_REFERENCE_INVALID")

    def test_define_non_strict_warns(self) -> None:
        res = self.client.post("/stacks/define", json={"stack": {"objects": [{"name": "Lead"}]}, "strict": False})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["warnings"][0]["code"], "STACK_UNCHECKED")

    def test_define_rejects_non_bool_strict(self) -> None:
        res = self.client.post("/stacks/define", json={"stack": {}, "strict": "no"})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["errors"][0]["path"], "strict")

    def test_compose_merges(self) -> None:
        payload = {
            "stacks": [
                {"objects": {"lead": {"fields": {"a": {"type": "text"}}}}, "roles": [{"name": "admin"}]},
                {"objects": {"lead": {"fields": {"b": {"type": "number"}}}}, "roles": [{"name": "member"}]},
            ],
            "options": {"objectConflict": "merge"},
        }
        res = self.client.post("/stacks/compose", json=payload)
        self.assertEqual(res.status_code, 200)
        stack = res.json()["data"]["stack"]
        self.assertEqual(sorted(stack["objects"][0]["fields"]), ["a", "b"])
        self.assertEqual([r["name"] for r in stack["roles"]], ["admin", "member"])
        self.assertEqual(res.json()["warnings"][0]["code"], "STACK_UNCHECKED")

    def test_compose_conflict(self) -> None:
        payload = {"stacks": [{"objects": [{"name": "x"}]}, {"objects": [{"name": "x"}]}]}
        res = self.client.post("/stacks/compose", json=payload)
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.json()["code"], "STACK_COMPOSE_CONFLICT")

    def test_compose_unvalidated_names(self) -> None:
        payload = {
            "stacks": [{"objects": [{"name": {"a": 1}}]}, {"objects": [{"name": {"a": 1}}]}],
            "options": {"objectConflict": "merge"},
        }
        res = self.client.post("/stacks/compose", json=payload)
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.json()["data"]["stack"]["objects"]), 2)

    def test_compose_bad_options(self) -> None:
        payload = {"stacks": [{}, {}], "options": {"manifest": "middle"}}
        res = self.client.post("/stacks/compose", json=payload)
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["code"], "STACK_COMPOSE_OPTIONS_INVALID")

    def test_compose_requires_stack_list(self) -> None:
        res = self.client.post("/stacks/compose", json={"stacks": {"a": {}}})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["errors"][0]["code"], "STACKS_REQUIRED")


if __name__ == "__main__":
    unittest.main()
