from __future__ import annotations

import unittest

from fastapi.testclient import TestClient

from dotbf.webui import SessionStore, create_app


class WebUIRunApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(create_app())

    def test_run_returns_output(self) -> None:
        response = self.client.post("/api/run", json={"code": "++[>++<-]>."})
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertEqual(payload["output_bytes"], [4])
        self.assertEqual(payload["steps"], 17)

    def test_run_with_input(self) -> None:
        response = self.client.post("/api/run", json={"code": ",.", "input": "A"})
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["output"], "A")

    def test_run_syntax_error(self) -> None:
        response = self.client.post("/api/run", json={"code": "+]"})
        self.assertEqual(response.status_code, 422, response.text)
        self.assertIn("Unexpected token: ']'", response.json()["detail"])

    def test_run_pointer_error(self) -> None:
        response = self.client.post("/api/run", json={"code": "<"})
        self.assertEqual(response.status_code, 409, response.text)
        self.assertIn("before start of tape", response.json()["detail"])

    def test_run_input_exhausted(self) -> None:
        response = self.client.post("/api/run", json={"code": ","})
        self.assertEqual(response.status_code, 409, response.text)

    def test_run_step_limit(self) -> None:
        response = self.client.post("/api/run", json={"code": "+[]", "max_steps": 10})
        self.assertEqual(response.status_code, 409, response.text)

    def test_run_custom_tape_length(self) -> None:
        response = self.client.post("/api/run", json={"code": ">", "tape_length": 1})
        self.assertEqual(response.status_code, 409, response.text)

    def test_run_rejects_invalid_tape_length(self) -> None:
        response = self.client.post("/api/run", json={"code": "+", "tape_length": 0})
        self.assertEqual(response.status_code, 422, response.text)

    def test_run_rejects_unbounded_step_limit(self) -> None:
        response = self.client.post("/api/run", json={"code": "+[]", "max_steps": None})
        self.assertEqual(response.status_code, 422, response.text)

    def test_run_rejects_oversized_requests(self) -> None:
        response = self.client.post("/api/run", json={"code": "+", "tape_length": 10**12})
        self.assertEqual(response.status_code, 422, response.text)
        response = self.client.post("/api/run", json={"code": "+", "max_steps": 10**12})
        self.assertEqual(response.status_code, 422, response.text)

    def test_run_deep_nesting_is_a_syntax_error(self) -> None:
        response = self.client.post("/api/run", json={"code": "[" * 2000 + "]" * 2000})
        self.assertEqual(response.status_code, 422, response.text)
        self.assertIn("Loop nesting too deep", response.json()["detail"])

    def test_run_returns_every_output_byte(self) -> None:
        response = self.client.post("/api/run", json={"code": "+.+."})
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["output_bytes"], [1, 2])


class WebUISessionApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = SessionStore()
        self.client = TestClient(create_app(self.store))

    def _create_session(self, *, code: str = ".", **payload):
        body = {"code": code}
        body.update(payload)
        response = self.client.post("/api/session", json=body)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_create_session_returns_initial_state(self) -> None:
        data = self._create_session(code="x+.", input="A")
        self.assertIn("session_id", data)
        self.assertEqual(data["program"], "+.")
        self.assertEqual(len(data["history"]), data["history_size"])
        self.assertEqual(data["state"]["step"], 0)
        self.assertIsNone(data["state"]["command"])
        self.assertFalse(data["finished"])
        self.assertIsNone(data["error"])
        self.assertEqual(len(self.store), 1)

    def test_create_session_syntax_error(self) -> None:
        response = self.client.post("/api/session", json={"code": "["})
        self.assertEqual(response.status_code, 422, response.text)
        self.assertEqual(len(self.store), 0)

    def test_create_session_rejects_unbounded_limits(self) -> None:
        response = self.client.post("/api/session", json={"code": "+[]", "max_steps": None})
        self.assertEqual(response.status_code, 422, response.text)
        response = self.client.post("/api/session", json={"code": "+", "tape_length": 10**12})
        self.assertEqual(response.status_code, 422, response.text)
        self.assertEqual(len(self.store), 0)

    def test_session_tape_length(self) -> None:
        data = self._create_session(code=">>", tape_length=2)
        session_id = data["session_id"]
        response = self.client.post(f"/api/session/{session_id}/run", json={})
        self.assertEqual(response.status_code, 409, response.text)
        self.assertIn("beyond the tape length", response.json()["detail"])

    def test_step_advances_state(self) -> None:
        data = self._create_session(code="++.")
        session_id = data["session_id"]

        response = self.client.post(f"/api/session/{session_id}/step", json={"count": 2})
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertEqual([state["step"] for state in payload["states"]], [1, 2])
        self.assertEqual(len(payload["history"]), payload["history_size"])
        self.assertEqual(payload["history"][-1]["step"], 2)
        self.assertFalse(payload["finished"])

    def test_run_to_completion(self) -> None:
        data = self._create_session(code="+++[>+<-]>.")
        session_id = data["session_id"]

        response = self.client.post(f"/api/session/{session_id}/run", json={})
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertTrue(payload["finished"])
        self.assertIsNone(payload["state"]["command"])
        self.assertEqual(payload["state"]["output"], "\x03")

    def test_run_with_limit(self) -> None:
        data = self._create_session(code="+++++")
        session_id = data["session_id"]

        response = self.client.post(f"/api/session/{session_id}/run", json={"limit": 3})
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertEqual(len(payload["states"]), 3)
        self.assertFalse(payload["finished"])

    def test_reset_restores_initial_state(self) -> None:
        data = self._create_session(code="+.")
        session_id = data["session_id"]
        self.client.post(f"/api/session/{session_id}/step", json={"count": 1})

        response = self.client.post(f"/api/session/{session_id}/reset")
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertEqual(payload["state"]["step"], 0)
        self.assertEqual(len(payload["history"]), 1)
        self.assertFalse(payload["finished"])

    def test_step_limit_conflict(self) -> None:
        data = self._create_session(code="++", max_steps=1)
        session_id = data["session_id"]

        ok = self.client.post(f"/api/session/{session_id}/step", json={"count": 1})
        self.assertEqual(ok.status_code, 200, ok.text)

        conflict = self.client.post(f"/api/session/{session_id}/step", json={"count": 1})
        self.assertEqual(conflict.status_code, 409, conflict.text)
        self.assertIn("detail", conflict.json())

        after = self.client.get(f"/api/session/{session_id}").json()
        self.assertTrue(after["finished"])
        self.assertIsNotNone(after["error"])

    def test_runtime_error_conflict(self) -> None:
        data = self._create_session(code="<")
        session_id = data["session_id"]
        response = self.client.post(f"/api/session/{session_id}/run", json={})
        self.assertEqual(response.status_code, 409, response.text)

    def test_unknown_session(self) -> None:
        response = self.client.get("/api/session/missing")
        self.assertEqual(response.status_code, 404)
        response = self.client.post("/api/session/missing/step", json={"count": 1})
        self.assertEqual(response.status_code, 404)

    def test_delete_session(self) -> None:
        data = self._create_session()
        session_id = data["session_id"]
        response = self.client.delete(f"/api/session/{session_id}")
        self.assertEqual(response.status_code, 204)
        response = self.client.delete(f"/api/session/{session_id}")
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
