import pytest

from servicedesk.core.exceptions import (
    ConflictError,
    ErrorCode,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from servicedesk.models.base import ComplaintStatus, CreatorType
from servicedesk.services.complaint.complaint_assignment_service import ComplaintAssignmentService
from servicedesk.services.complaint.complaint_id import fallback_store_code, store_code_for


def finish(lifecycle, complaint, technician, resolution):
    lifecycle.start(complaint.complaint_id, technician.id)
    return lifecycle.resolve(complaint.complaint_id, technician.id, resolution)


def with_default_phone(db, clock, settings, phone):
    return ComplaintAssignmentService(
        db, clock=clock, settings=settings.model_copy(update={"DEFAULT_TECHNICIAN_PHONE": phone})
    )


class TestAssignTechnician:
    def test_technician_can_hold_many_assignments(self, assignment, file_complaint, technician, admin):
        complaints = [file_complaint() for _ in range(3)]

        for complaint in complaints:
            assignment.assign_technician(complaint.complaint_id, technician.id, assigned_by=admin.id)
        assignment.lifecycle.start(complaints[0].complaint_id, technician.id)

        workload = assignment.technician_workload(technician.id)
        assert workload == {"total": 3, "assigned": 2, "in_progress": 1, "completed": 0}

    def test_inactive_technician_is_rejected(self, assignment, directory, file_complaint, technician):
        directory.set_active(technician.id, False)
        complaint = file_complaint()

        with pytest.raises(ValidationError) as exc:
            assignment.assign_technician(complaint.complaint_id, technician.id)
        assert exc.value.error_code == ErrorCode.INACTIVE_USER
        assert assignment.lifecycle.get(complaint.complaint_id).status == ComplaintStatus.PENDING

    def test_assigning_non_pending_fails(self, assignment, file_complaint, technician, other_technician):
        complaint = file_complaint()
        assignment.assign_technician(complaint.complaint_id, technician.id)

        with pytest.raises(InvalidTransitionError):
            assignment.assign_technician(complaint.complaint_id, other_technician.id)

    def test_unknown_admin_is_not_found(self, assignment, file_complaint, technician):
        complaint = file_complaint()
        with pytest.raises(NotFoundError):
            assignment.assign_technician(complaint.complaint_id, technician.id, assigned_by="ghost")

    def test_workload_of_unknown_technician(self, assignment):
        with pytest.raises(NotFoundError):
            assignment.technician_workload("ghost")


class TestDeletionGuards:
    def test_technician_with_active_work_cannot_be_deleted(
        self, assignment, file_complaint, technician, resolution
    ):
        first, second = file_complaint(), file_complaint()
        assignment.assign_technician(first.complaint_id, technician.id)
        assignment.assign_technician(second.complaint_id, technician.id)
        assignment.lifecycle.start(second.complaint_id, technician.id)

        with pytest.raises(ConflictError) as exc:
            assignment.delete_technician(technician.id)
        assert exc.value.details["active_complaints"] == 2

        finish(assignment.lifecycle, first, technician, resolution)
        with pytest.raises(ConflictError):
            assignment.delete_technician(technician.id)

        assignment.lifecycle.resolve(second.complaint_id, technician.id, resolution)
        assignment.delete_technician(technician.id)

        with pytest.raises(NotFoundError):
            assignment.directory.get_user(technician.id)

    def test_idle_technician_can_be_deleted(self, assignment, technician):
        assignment.delete_technician(technician.id)
        with pytest.raises(NotFoundError):
            assignment.delete_technician(technician.id)

    def test_client_with_open_complaints_cannot_be_deleted(
        self, assignment, file_complaint, client_user, technician, resolution
    ):
        complaint = file_complaint()

        with pytest.raises(ConflictError):
            assignment.delete_client(client_user.id)

        assignment.assign_technician(complaint.complaint_id, technician.id)
        finish(assignment.lifecycle, complaint, technician, resolution)
        assignment.delete_client(client_user.id)


class TestAutoAssign:
    def test_missing_default_phone(self, assignment, file_complaint):
        outcome = assignment.auto_assign_to_default(file_complaint().complaint_id)
        assert not outcome.assigned
        assert outcome.reason == "missing_default_phone"

    def test_default_technician_matched_on_national_number(
        self, db, clock, settings, file_complaint, technician
    ):
        service = with_default_phone(db, clock, settings, "919876543210")
        complaint = file_complaint()

        outcome = service.auto_assign_to_default(complaint.complaint_id)

        assert outcome.assigned
        assert outcome.technician_id == technician.id
        stored = service.lifecycle.get(complaint.complaint_id)
        assert stored.status == ComplaintStatus.ASSIGNED
        assert stored.assigned_technician_id == technician.id

    def test_unknown_default_technician(self, db, clock, settings, file_complaint, technician):
        service = with_default_phone(db, clock, settings, "9999999999")
        outcome = service.auto_assign_to_default(file_complaint().complaint_id)
        assert outcome.reason == "technician_not_found"

    def test_inactive_default_technician_is_not_used(
        self, db, clock, settings, directory, file_complaint, technician
    ):
        directory.set_active(technician.id, False)
        service = with_default_phone(db, clock, settings, "9876543210")
        outcome = service.auto_assign_to_default(file_complaint().complaint_id)
        assert outcome.reason == "technician_not_found"

    def test_already_assigned(self, db, clock, settings, file_complaint, technician, other_technician):
        service = with_default_phone(db, clock, settings, "9876543210")
        complaint = file_complaint()
        service.assign_technician(complaint.complaint_id, other_technician.id)

        outcome = service.auto_assign_to_default(complaint.complaint_id)
        assert outcome.reason == "already_assigned"
        assert service.lifecycle.get(complaint.complaint_id).assigned_technician_id == other_technician.id

    def test_pending_spread_over_lightest_workload(
        self, assignment, file_complaint, technician, other_technician, clock
    ):
        busy = file_complaint()
        assignment.assign_technician(busy.complaint_id, technician.id)
        pending = []
        for _ in range(3):
            clock.advance(minutes=5)
            pending.append(file_complaint())

        outcomes = assignment.auto_assign_pending()

        assert [o.complaint_id for o in outcomes] == [c.complaint_id for c in pending]
        assert all(o.assigned for o in outcomes)
        assert outcomes[0].technician_id == other_technician.id
        held = {
            tech.id: assignment.technician_workload(tech.id)["assigned"]
            for tech in (technician, other_technician)
        }
        assert held == {technician.id: 2, other_technician.id: 2}

    def test_pending_without_technicians(self, assignment, file_complaint):
        file_complaint()
        outcomes = assignment.auto_assign_pending()
        assert [o.reason for o in outcomes] == ["technician_not_found"]

    def test_technician_filed_complaint_can_be_auto_assigned(
        self, db, clock, settings, complaint_payload, technician
    ):
        service = with_default_phone(db, clock, settings, "9876543210")
        complaint = service.lifecycle.create(
            complaint_payload, {"type": CreatorType.TECHNICIAN, "ref": technician.id}
        )
        assert service.auto_assign_to_default(complaint.complaint_id).assigned


class TestStoreCodes:
    @pytest.mark.parametrize(
        "store, code",
        [
            ("Magarpatta", "MAG"),
            ("  Viman Nagar ", "VMN"),
            ("Baner", "BAN"),
            ("Go", "GOX"),
            ("12 Street", "XXX"),
            ("", "OTH"),
            (None, "OTH"),
        ],
    )
    def test_store_code_for(self, store, code):
        assert store_code_for(store) == code

    def test_overrides_win(self):
        assert store_code_for("Baner", {"Baner": "BNR"}) == "BNR"

    def test_fallback_collapses_whitespace(self):
        assert fallback_store_code("  koregaon   park ") == "KOR"
