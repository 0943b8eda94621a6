import unittest
from datetime import date, time
from unittest.mock import patch

from sqlalchemy import create_engine, select, func
from sqlalchemy.orm import sessionmaker

from core.database import Base
from core.errors import DuplicateName, NotFound, ScheduleLocked, ValidationError
import models_bootstrap  # noqa: F401

from assignment.models import ShiftAssignment
from schedule.models import Schedule, ScheduleStatus
from schedule import service
from schedule.schema import ScheduleCreate, ScheduleUpdate
from shift.models import Shift
from shift.schemas import ShiftTemplate
from staffing.cache import staffing_cache


def morning(required_staff=2, name="Morning"):
    return ShiftTemplate(name=name, start_time=time(6, 0), end_time=time(14, 0), required_staff=required_staff)


class ScheduleServiceTests(unittest.TestCase):
    def setUp(self):
        # Fresh in-memory DB
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)

        Session = sessionmaker(bind=self.engine, future=True)
        self.db = Session()
        staffing_cache.clear()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()
        staffing_cache.clear()

    def _dto(self, **over):
        data = dict(
            name="Week 1",
            department_id=7,
            facility_id=3,
            workspace_id=1,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 7),
            shifts=[morning()],
            created_by=55,
        )
        data.update(over)
        return ScheduleCreate(**data)

    def _add_assignment(self, shift_id, staff_id, day, slot=1):
        row = ShiftAssignment(shift_id=shift_id, staff_id=staff_id, assignment_date=day, slot=slot, assigned_by=55)
        self.db.add(row)
        self.db.commit()
        return row

    # ---------- create_schedule ----------
    def test_create_schedule_happy_path(self):
        row = service.create_schedule(self.db, self._dto())

        self.assertIsInstance(row.id, int)
        self.assertEqual(row.name, "Week 1")
        self.assertEqual(row.status, ScheduleStatus.draft)
        self.assertEqual(row.shift_count, 1)
        self.assertEqual(row.created_by, 55)
        self.assertIsNone(row.published_at)
        self.assertEqual([s.shift_order for s in row.shifts], [1])
        self.assertEqual(row.shifts[0].required_staff, 2)

    def test_create_schedule_uses_default_templates(self):
        row = service.create_schedule(self.db, self._dto(shifts=None, shift_count=3))
        self.assertEqual([s.name for s in row.shifts], ["Morning Shift", "Afternoon Shift", "Night Shift"])
        self.assertEqual([s.color for s in row.shifts], ["#3b82f6", "#10b981", "#f59e0b"])
        night = row.shifts[2]
        self.assertTrue(night.is_overnight)
        self.assertEqual(night.duration_minutes, 8 * 60)

    def test_create_schedule_single_default_when_nothing_given(self):
        row = service.create_schedule(self.db, self._dto(shifts=None))
        self.assertEqual(row.shift_count, 1)
        self.assertEqual(row.shifts[0].name, "Morning Shift")

    def test_create_schedule_422_when_start_after_end(self):
        with self.assertRaises(ValidationError):
            service.create_schedule(self.db, self._dto(start_date=date(2024, 1, 8)))
        self.assertEqual(self.db.scalar(select(func.count(Schedule.id))), 0)

    def test_create_schedule_single_day_window_ok(self):
        row = service.create_schedule(self.db, self._dto(end_date=date(2024, 1, 1)))
        self.assertTrue(row.covers(date(2024, 1, 1)))

    def test_create_schedule_shift_count_mismatch_rejected(self):
        with self.assertRaises(ValidationError):
            service.create_schedule(self.db, self._dto(shift_count=2))

    def test_create_schedule_too_many_shifts_rejected(self):
        four = [morning(name=f"S{i}") for i in range(4)]
        with self.assertRaises(ValidationError):
            service.create_schedule(self.db, self._dto(shifts=four))

    def test_create_schedule_blank_name_rejected(self):
        with self.assertRaises(ValidationError):
            service.create_schedule(self.db, self._dto(name="   "))

    # ---------- names ----------
    def test_duplicate_name_same_department(self):
        service.create_schedule(self.db, self._dto())
        with self.assertRaises(DuplicateName):
            service.create_schedule(self.db, self._dto(start_date=date(2024, 2, 1), end_date=date(2024, 2, 7)))
        self.assertEqual(self.db.scalar(select(func.count(Schedule.id))), 1)

    def test_duplicate_name_ignores_case_and_spacing(self):
        service.create_schedule(self.db, self._dto(name="Week 1"))
        for variant in ("week 1", "  WEEK   1 "):
            with self.assertRaises(DuplicateName):
                service.create_schedule(self.db, self._dto(name=variant))

    def test_same_name_other_department_ok(self):
        service.create_schedule(self.db, self._dto())
        other = service.create_schedule(self.db, self._dto(department_id=8))
        self.assertEqual(other.name, "Week 1")

    def test_unique_key_backstops_lost_name_race(self):
        service.create_schedule(self.db, self._dto())
        # pre-check misses the row (as a concurrent create would), the constraint still refuses it
        with patch("schedule.service.is_duplicate_name", side_effect=[False, True]):
            with self.assertRaises(DuplicateName):
                service.create_schedule(self.db, self._dto())
        self.assertEqual(self.db.scalar(select(func.count(Schedule.id))), 1)

    def test_is_duplicate_name_excludes_self(self):
        row = service.create_schedule(self.db, self._dto())
        self.assertTrue(service.is_duplicate_name(self.db, department_id=7, name="WEEK 1"))
        self.assertFalse(service.is_duplicate_name(self.db, department_id=7, name="week 1", exclude_id=row.id))

    # ---------- reads ----------
    def test_get_schedules_filters(self):
        a = service.create_schedule(self.db, self._dto(name="Jan"))
        b = service.create_schedule(
            self.db, self._dto(name="Feb", start_date=date(2024, 2, 1), end_date=date(2024, 2, 7))
        )
        service.create_schedule(self.db, self._dto(name="Other", department_id=9))
        service.publish_schedule(self.db, b.id)

        ids = [s.id for s in service.get_schedules(self.db, department_id=7)]
        self.assertEqual(ids, [b.id, a.id])
        ids = [s.id for s in service.get_schedules(self.db, department_id=7, statuses=[ScheduleStatus.draft])]
        self.assertEqual(ids, [a.id])
        ids = [s.id for s in service.get_schedules(self.db, active_on=date(2024, 2, 3))]
        self.assertEqual(ids, [b.id])

    def test_require_schedule_not_found(self):
        with self.assertRaises(NotFound):
            service.require_schedule(self.db, 999)

    # ---------- update_schedule ----------
    def test_update_renames_draft(self):
        row = service.create_schedule(self.db, self._dto())
        out = service.update_schedule(self.db, row.id, ScheduleUpdate(name="Week One"))
        self.assertEqual(out.name, "Week One")
        # renaming to its own name in a different case is fine
        out = service.update_schedule(self.db, row.id, ScheduleUpdate(name="WEEK ONE"))
        self.assertEqual(out.name, "WEEK ONE")

    def test_update_rename_collision(self):
        service.create_schedule(self.db, self._dto(name="Week 1"))
        row = service.create_schedule(self.db, self._dto(name="Week 2"))
        with self.assertRaises(DuplicateName):
            service.update_schedule(self.db, row.id, ScheduleUpdate(name="week 1"))

    def test_update_rejects_inverted_window(self):
        row = service.create_schedule(self.db, self._dto())
        with self.assertRaises(ValidationError):
            service.update_schedule(self.db, row.id, ScheduleUpdate(end_date=date(2023, 12, 1)))

    def test_update_window_shrink_drops_out_of_range_assignments(self):
        row = service.create_schedule(self.db, self._dto())
        shift_id = row.shifts[0].id
        self._add_assignment(shift_id, 1, date(2024, 1, 2))
        self._add_assignment(shift_id, 1, date(2024, 1, 6))
        staffing_cache.put(shift_id, date(2024, 1, 6), 1)

        service.update_schedule(self.db, row.id, ScheduleUpdate(end_date=date(2024, 1, 4)))
        days = list(self.db.scalars(select(ShiftAssignment.assignment_date)))
        self.assertEqual(days, [date(2024, 1, 2)])
        self.assertIsNone(staffing_cache.get(shift_id, date(2024, 1, 6)))

    def test_update_published_is_locked(self):
        row = service.create_schedule(self.db, self._dto())
        service.publish_schedule(self.db, row.id)
        with self.assertRaises(ScheduleLocked):
            service.update_schedule(self.db, row.id, ScheduleUpdate(name="Renamed"))

    # ---------- replace_shifts ----------
    def test_replace_shifts_swaps_whole_set(self):
        row = service.create_schedule(self.db, self._dto())
        old_shift = row.shifts[0].id
        self._add_assignment(old_shift, 1, date(2024, 1, 2))

        new = [
            morning(required_staff=1, name="Early"),
            ShiftTemplate(name="Late", start_time=time(22, 0), end_time=time(6, 0), required_staff=1),
        ]
        out = service.replace_shifts(self.db, row.id, new, shift_count=2)
        self.assertEqual(out.shift_count, 2)
        self.assertEqual([(s.shift_order, s.name) for s in out.shifts], [(1, "Early"), (2, "Late")])
        self.assertIsNone(self.db.get(Shift, old_shift))
        self.assertEqual(self.db.scalar(select(func.count(ShiftAssignment.id))), 0)

    def test_replace_shifts_count_mismatch(self):
        row = service.create_schedule(self.db, self._dto())
        with self.assertRaises(ValidationError):
            service.replace_shifts(self.db, row.id, [morning()], shift_count=2)

    def test_replace_shifts_locked_after_publish(self):
        row = service.create_schedule(self.db, self._dto())
        service.publish_schedule(self.db, row.id)
        with self.assertRaises(ScheduleLocked):
            service.replace_shifts(self.db, row.id, [morning()])

    # ---------- publish_schedule ----------
    def test_publish_sets_status_and_timestamp(self):
        row = service.create_schedule(self.db, self._dto())
        out = service.publish_schedule(self.db, row.id)
        self.assertEqual(out.status, ScheduleStatus.published)
        self.assertIsNotNone(out.published_at)

    def test_publish_is_idempotent(self):
        row = service.create_schedule(self.db, self._dto())
        first = service.publish_schedule(self.db, row.id).published_at
        again = service.publish_schedule(self.db, row.id)
        self.assertEqual(again.status, ScheduleStatus.published)
        self.assertEqual(again.published_at, first)

    def test_publish_refused_while_a_shift_needs_nobody(self):
        row = service.create_schedule(
            self.db, self._dto(shifts=[morning(), morning(required_staff=0, name="Spare")])
        )
        with self.assertRaises(ValidationError) as cm:
            service.publish_schedule(self.db, row.id)
        self.assertEqual(cm.exception.payload, {"shifts": ["Spare"]})
        self.db.expire_all()
        self.assertEqual(self.db.get(Schedule, row.id).status, ScheduleStatus.draft)

    def test_publish_archived_refused(self):
        row = service.create_schedule(self.db, self._dto())
        service.archive_schedule(self.db, row.id)
        with self.assertRaises(ScheduleLocked):
            service.publish_schedule(self.db, row.id)

    # ---------- delete_schedule ----------
    def test_delete_cascades_to_shifts_and_assignments(self):
        row = service.create_schedule(self.db, self._dto(shifts=[morning(), morning(name="Late")]))
        s1, s2 = (s.id for s in row.shifts)
        service.publish_schedule(self.db, row.id)
        self._add_assignment(s1, 1, date(2024, 1, 2))
        self._add_assignment(s2, 2, date(2024, 1, 3))
        staffing_cache.put(s1, date(2024, 1, 2), 1)

        removed = service.delete_schedule(self.db, row.id)
        self.assertEqual(removed, 2)
        self.assertIsNone(self.db.get(Schedule, row.id))
        self.assertEqual(self.db.scalar(select(func.count(Shift.id))), 0)
        self.assertEqual(self.db.scalar(select(func.count(ShiftAssignment.id))), 0)
        self.assertIsNone(staffing_cache.get(s1, date(2024, 1, 2)))

    def test_delete_missing_not_found(self):
        with self.assertRaises(NotFound):
            service.delete_schedule(self.db, 404)

    def test_name_is_free_again_after_delete(self):
        row = service.create_schedule(self.db, self._dto())
        service.delete_schedule(self.db, row.id)
        again = service.create_schedule(self.db, self._dto())
        self.assertEqual(again.name, "Week 1")

    # ---------- archival ----------
    def test_archive_ended_schedules_only_touches_past_published(self):
        past = service.create_schedule(self.db, self._dto(name="Past"))
        service.publish_schedule(self.db, past.id)
        draft = service.create_schedule(self.db, self._dto(name="Draft"))
        current = service.create_schedule(
            self.db, self._dto(name="Now", start_date=date(2024, 2, 1), end_date=date(2024, 2, 29))
        )
        service.publish_schedule(self.db, current.id)

        n = service.archive_ended_schedules(self.db, today=date(2024, 2, 10))
        self.assertEqual(n, 1)
        self.assertEqual(self.db.get(Schedule, past.id).status, ScheduleStatus.archived)
        self.assertIsNotNone(self.db.get(Schedule, past.id).archived_at)
        self.assertEqual(self.db.get(Schedule, draft.id).status, ScheduleStatus.draft)
        self.assertEqual(self.db.get(Schedule, current.id).status, ScheduleStatus.published)


if __name__ == "__main__":
    unittest.main()
