import unittest
from types import SimpleNamespace as Obj
from unittest.mock import patch
from datetime import date, time
from fastapi.testclient import TestClient

from main import app
from core.database import get_db
from core.errors import ValidationError
from authz.context import ActorContext, ActorRole
from authz.deps import get_current_actor


def _shift(id=1, name="Night", start=time(22), end=time(6)):
    return Obj(
        id=id, schedule_id=10, name=name, start_time=start, end_time=end, shift_order=1,
        required_staff=2, color="#f59e0b", is_overnight=end < start, duration_minutes=480,
    )


class ShiftRouterTests(unittest.TestCase):
    def setUp(self):
        # Minimal fake DB (router doesn't hit DB directly in these tests)
        class FakeDB:
            def rollback(self): ...
        def _fake_db():
            yield FakeDB()

        app.dependency_overrides[get_db] = _fake_db
        # plain staff can read shifts
        app.dependency_overrides[get_current_actor] = lambda: ActorContext(user_id=5, role=ActorRole.staff)

        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_current_actor, None)

    # ---------- LIST ----------
    @patch("shift.router.service.get_shifts")
    def test_list_shifts_forwards_filters(self, mock_get_shifts):
        mock_get_shifts.return_value = [_shift()]
        r = self.client.get("/api/shifts?schedule_id=10")
        self.assertEqual(r.status_code, 200, r.text)
        body = r.json()
        self.assertEqual(body[0]["name"], "Night")
        self.assertTrue(body[0]["is_overnight"])
        _, kwargs = mock_get_shifts.call_args
        self.assertEqual(kwargs["schedule_id"], 10)
        self.assertIsNone(kwargs["department_id"])

    # ---------- GET BY ID ----------
    @patch("shift.router.service.get_shift")
    def test_get_shift_404(self, mock_get):
        mock_get.return_value = None
        r = self.client.get("/api/shifts/999")
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json()["detail"], "Shift not found")

    @patch("shift.router.service.get_shift")
    def test_get_shift_ok(self, mock_get):
        mock_get.return_value = _shift(start=time(6), end=time(14), name="Morning")
        r = self.client.get("/api/shifts/1")
        self.assertEqual(r.status_code, 200, r.text)
        self.assertFalse(r.json()["is_overnight"])

    # ---------- no write routes ----------
    def test_shifts_are_read_only_here(self):
        r = self.client.post("/api/shifts", json={"name": "x"})
        self.assertEqual(r.status_code, 405)


class StaffingRouterTests(unittest.TestCase):
    def setUp(self):
        class FakeDB:
            def rollback(self): ...
        def _fake_db():
            yield FakeDB()

        app.dependency_overrides[get_db] = _fake_db
        app.dependency_overrides[get_current_actor] = lambda: ActorContext(user_id=5, role=ActorRole.staff)
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_current_actor, None)

    @patch("staffing.router.service.daily_staffing")
    def test_daily_staffing_shape(self, mock_daily):
        mock_daily.return_value = {
            date(2024, 1, 2): [
                Obj(
                    shift=_shift(), schedule_id=10, on_date=date(2024, 1, 2),
                    assigned_count=1, required_count=2, understaffed=True,
                    assignees=[Obj(id=3, staff_id=101)],
                )
            ]
        }
        r = self.client.get("/api/staffing/daily?department_id=7&start=2024-01-01&end=2024-01-07")
        self.assertEqual(r.status_code, 200, r.text)
        day = r.json()["2024-01-02"][0]
        self.assertTrue(day["understaffed"])
        self.assertEqual(day["assignees"], [{"id": 3, "staff_id": 101}])
        args = mock_daily.call_args.args
        self.assertEqual(args[1:], (7, date(2024, 1, 1), date(2024, 1, 7)))

    @patch("staffing.router.service.daily_staffing")
    def test_daily_staffing_empty_and_invalid(self, mock_daily):
        mock_daily.return_value = {}
        r = self.client.get("/api/staffing/daily?department_id=7&start=2024-01-01&end=2024-01-07")
        self.assertEqual(r.json(), {})

        mock_daily.side_effect = ValidationError("start must be on or before end")
        r = self.client.get("/api/staffing/daily?department_id=7&start=2024-01-07&end=2024-01-01")
        self.assertEqual(r.status_code, 422)
        self.assertEqual(r.json()["code"], "validation_error")


if __name__ == "__main__":
    unittest.main()
