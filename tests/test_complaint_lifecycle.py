import threading
from datetime import datetime, timezone

import pytest

from servicedesk.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from servicedesk.models.base import ComplaintStatus, CreatorType, Priority
from servicedesk.schemas.complaint import Creator
from servicedesk.services.complaint.complaint_lifecycle_service import ComplaintLifecycleService
from servicedesk.services.user.user_directory import UserDirectory


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def photos(count, prefix="p"):
    return [{"url": f"/uploads/{prefix}{i}.jpg", "stored_id": f"{prefix}{i}.jpg"} for i in range(count)]


def walk_to_in_progress(lifecycle, complaint, technician):
    lifecycle.assign(complaint.complaint_id, technician.id)
    return lifecycle.start(complaint.complaint_id, technician.id)


class TestCreate:
    def test_new_complaint_is_pending_with_defaults(self, file_complaint, clock, client_user):
        complaint = file_complaint()

        assert complaint.status == ComplaintStatus.PENDING
        assert complaint.priority == Priority.MEDIUM
        assert complaint.complaint_id == "CMP-MAG-000001"
        assert complaint.location == "Magarpatta"
        assert complaint.creator_type == CreatorType.CLIENT
        assert complaint.creator_id == client_user.id
        assert complaint.created_at == clock.now()
        assert complaint.assigned_at is None
        assert complaint.started_at is None
        assert complaint.resolved_at is None
        assert complaint.assigned_technician_id is None

    def test_complaint_ids_are_unique_per_store(self, file_complaint):
        first = file_complaint()
        second = file_complaint()
        other = file_complaint(store_name=None, location="Baner Road")

        assert first.complaint_id == "CMP-MAG-000001"
        assert second.complaint_id == "CMP-MAG-000002"
        assert other.complaint_id == "CMP-BAN-000001"

    def test_explicit_priority_and_photos_are_kept(self, file_complaint):
        complaint = file_complaint(priority="urgent", photos=photos(5))

        assert complaint.priority == Priority.URGENT
        assert len(complaint.photos) == 5
        assert complaint.photos[0] == {"url": "/uploads/p0.jpg", "stored_id": "p0.jpg"}

    @pytest.mark.parametrize("field", ["title", "description"])
    def test_blank_required_field_fails(self, file_complaint, field):
        with pytest.raises(ValidationError) as exc:
            file_complaint(**{field: "   "})
        assert field in exc.value.field_errors

    def test_missing_location_and_store_fails(self, file_complaint):
        with pytest.raises(ValidationError):
            file_complaint(store_name=None)

    def test_more_than_five_photos_fails(self, file_complaint, lifecycle):
        with pytest.raises(ValidationError) as exc:
            file_complaint(photos=photos(6))
        assert "photos" in exc.value.field_errors

    def test_unknown_creator_fails(self, lifecycle, complaint_payload):
        ghost = Creator(type=CreatorType.CLIENT, ref="missing")
        with pytest.raises(NotFoundError):
            lifecycle.create(complaint_payload, ghost)

    def test_creator_role_must_match(self, lifecycle, complaint_payload, technician):
        pretender = Creator(type=CreatorType.ADMIN, ref=technician.id)
        with pytest.raises(NotFoundError):
            lifecycle.create(complaint_payload, pretender)

    def test_technician_and_admin_can_file(self, lifecycle, complaint_payload, technician, as_admin):
        by_tech = lifecycle.create(complaint_payload, {"type": "technician", "ref": technician.id})
        by_admin = lifecycle.create(complaint_payload, as_admin)

        assert by_tech.creator_type == CreatorType.TECHNICIAN
        assert by_admin.creator_type == CreatorType.ADMIN


class TestTransitions:
    def test_full_lifecycle_sets_each_timestamp_once(
        self, lifecycle, file_complaint, technician, admin, clock, resolution
    ):
        complaint = file_complaint()
        created_at = complaint.created_at

        clock.set(utc(2024, 1, 12, 10, 0))
        complaint = lifecycle.assign(complaint.complaint_id, technician.id, assigned_by=admin.id)
        assert complaint.status == ComplaintStatus.ASSIGNED
        assert complaint.assigned_technician_id == technician.id
        assert complaint.assigned_by_id == admin.id
        assert complaint.assigned_at == utc(2024, 1, 12, 10, 0)
        assert complaint.started_at is None

        clock.set(utc(2024, 1, 13, 8, 0))
        complaint = lifecycle.start(complaint.complaint_id, technician.id, notes="On site")
        assert complaint.status == ComplaintStatus.IN_PROGRESS
        assert complaint.started_at == utc(2024, 1, 13, 8, 0)
        assert complaint.technician_notes == "On site"

        clock.set(utc(2024, 2, 1, 16, 30))
        complaint = lifecycle.resolve(
            complaint.complaint_id,
            technician.id,
            {**resolution, "resolution_photos": photos(2, "proof")},
        )
        assert complaint.status == ComplaintStatus.RESOLVED
        assert complaint.resolved_at == utc(2024, 2, 1, 16, 30)
        assert complaint.resolution_notes == "Recharged refrigerant"
        assert complaint.materials_used == "R32 gas, 1 can"
        assert len(complaint.resolution_photos) == 2
        assert complaint.resolution_photos[0]["uploaded_at"] == "2024-02-01T16:30:00+00:00"

        assert complaint.created_at == created_at
        assert complaint.assigned_at == utc(2024, 1, 12, 10, 0)
        assert complaint.started_at == utc(2024, 1, 13, 8, 0)
        assert complaint.version == 4

    def test_assign_unknown_complaint(self, lifecycle, technician):
        with pytest.raises(NotFoundError):
            lifecycle.assign("CMP-MAG-999999", technician.id)

    def test_assign_unknown_technician(self, lifecycle, file_complaint):
        complaint = file_complaint()
        with pytest.raises(NotFoundError):
            lifecycle.assign(complaint.complaint_id, "nobody")

    def test_assign_to_a_client_id_is_not_found(self, lifecycle, file_complaint, client_user):
        complaint = file_complaint()
        with pytest.raises(NotFoundError):
            lifecycle.assign(complaint.complaint_id, client_user.id)

    def test_assign_by_internal_id(self, lifecycle, file_complaint, technician):
        complaint = file_complaint()
        assigned = lifecycle.assign(complaint.id, technician.id)
        assert assigned.status == ComplaintStatus.ASSIGNED

    def test_assign_twice_fails(self, lifecycle, file_complaint, technician, other_technician):
        complaint = file_complaint()
        lifecycle.assign(complaint.complaint_id, technician.id)

        with pytest.raises(InvalidTransitionError):
            lifecycle.assign(complaint.complaint_id, other_technician.id)
        assert lifecycle.get(complaint.complaint_id).assigned_technician_id == technician.id

    def test_assign_fails_once_in_progress(self, lifecycle, file_complaint, technician):
        complaint = walk_to_in_progress(lifecycle, file_complaint(), technician)
        with pytest.raises(InvalidTransitionError):
            lifecycle.assign(complaint.complaint_id, technician.id)

    def test_start_requires_assigned(self, lifecycle, file_complaint, technician):
        complaint = file_complaint()
        with pytest.raises(InvalidTransitionError):
            lifecycle.start(complaint.complaint_id, technician.id)

    def test_start_by_other_technician_is_forbidden(
        self, lifecycle, file_complaint, technician, other_technician
    ):
        complaint = file_complaint()
        lifecycle.assign(complaint.complaint_id, technician.id)

        with pytest.raises(ForbiddenError):
            lifecycle.start(complaint.complaint_id, other_technician.id)
        assert lifecycle.get(complaint.complaint_id).status == ComplaintStatus.ASSIGNED

    @pytest.mark.parametrize("acting", ["technician", "other_technician"])
    def test_resolve_before_start_always_invalid(
        self, request, lifecycle, file_complaint, technician, resolution, acting
    ):
        complaint = file_complaint()
        lifecycle.assign(complaint.complaint_id, technician.id)
        actor = request.getfixturevalue(acting)

        with pytest.raises(InvalidTransitionError):
            lifecycle.resolve(complaint.complaint_id, actor.id, resolution)

    def test_resolve_by_other_technician_is_forbidden(
        self, lifecycle, file_complaint, technician, other_technician, resolution
    ):
        complaint = walk_to_in_progress(lifecycle, file_complaint(), technician)

        with pytest.raises(ForbiddenError):
            lifecycle.resolve(complaint.complaint_id, other_technician.id, resolution)

        unchanged = lifecycle.get(complaint.complaint_id)
        assert unchanged.status == ComplaintStatus.IN_PROGRESS
        assert unchanged.resolved_at is None
        assert unchanged.resolution_notes is None

    def test_resolve_requires_notes(self, lifecycle, file_complaint, technician, resolution):
        complaint = walk_to_in_progress(lifecycle, file_complaint(), technician)

        with pytest.raises(ValidationError) as exc:
            lifecycle.resolve(complaint.complaint_id, technician.id, {**resolution, "resolution_notes": "  "})
        assert "resolution_notes" in exc.value.field_errors
        assert lifecycle.get(complaint.complaint_id).status == ComplaintStatus.IN_PROGRESS

    def test_resolve_requires_materials_when_flag_on(self, lifecycle, file_complaint, technician):
        complaint = walk_to_in_progress(lifecycle, file_complaint(), technician)

        with pytest.raises(ValidationError) as exc:
            lifecycle.resolve(complaint.complaint_id, technician.id, {"resolution_notes": "Fixed"})
        assert "materials_used" in exc.value.field_errors

    def test_materials_optional_when_flag_off(self, db, clock, settings, file_complaint, technician):
        relaxed = ComplaintLifecycleService(
            db, clock=clock, settings=settings.model_copy(update={"COMPLAINT_REQUIRE_MATERIALS_USED": False})
        )
        complaint = walk_to_in_progress(relaxed, file_complaint(), technician)

        resolved = relaxed.resolve(complaint.complaint_id, technician.id, {"resolution_notes": "Fixed"})
        assert resolved.status == ComplaintStatus.RESOLVED
        assert resolved.materials_used is None

    def test_resolve_rejects_too_many_photos(self, lifecycle, file_complaint, technician, resolution):
        complaint = walk_to_in_progress(lifecycle, file_complaint(), technician)
        with pytest.raises(ValidationError):
            lifecycle.resolve(
                complaint.complaint_id, technician.id, {**resolution, "resolution_photos": photos(6)}
            )

    def test_resolved_is_terminal(self, lifecycle, file_complaint, technician, resolution, as_client):
        complaint = walk_to_in_progress(lifecycle, file_complaint(), technician)
        lifecycle.resolve(complaint.complaint_id, technician.id, resolution)
        reference = complaint.complaint_id

        with pytest.raises(InvalidTransitionError):
            lifecycle.assign(reference, technician.id)
        with pytest.raises(InvalidTransitionError):
            lifecycle.start(reference, technician.id)
        with pytest.raises(InvalidTransitionError):
            lifecycle.resolve(reference, technician.id, resolution)
        with pytest.raises(InvalidTransitionError):
            lifecycle.edit(reference, {"title": "Reopen"}, as_client)
        with pytest.raises(InvalidTransitionError):
            lifecycle.delete(reference)


class TestEditAndDelete:
    def test_edit_replaces_fields_and_photos(self, lifecycle, file_complaint, as_client, clock):
        complaint = file_complaint(photos=photos(3))
        clock.advance(hours=1)

        edited = lifecycle.edit(
            complaint.complaint_id,
            {
                "title": "AC leaking",
                "priority": "high",
                "removed_photo_ids": ["p0.jpg", "p2.jpg"],
                "new_photos": photos(4, "n"),
            },
            as_client,
        )

        assert edited.title == "AC leaking"
        assert edited.priority == Priority.HIGH
        assert edited.description == complaint.description
        assert [p["stored_id"] for p in edited.photos] == ["p1.jpg", "n0.jpg", "n1.jpg", "n2.jpg", "n3.jpg"]
        assert edited.status == ComplaintStatus.PENDING
        assert edited.created_at == utc(2024, 1, 10, 9, 0)

    def test_edit_forgets_removed_media(self, lifecycle, file_complaint, as_client, media_store):
        complaint = file_complaint(photos=photos(2))
        lifecycle.edit(complaint.complaint_id, {"removed_photo_ids": ["p1.jpg"]}, as_client)
        assert media_store.forgotten == ["p1.jpg"]

    def test_edit_enforces_photo_ceiling(self, lifecycle, file_complaint, as_client):
        complaint = file_complaint(photos=photos(4))
        with pytest.raises(ValidationError):
            lifecycle.edit(complaint.complaint_id, {"new_photos": photos(2, "n")}, as_client)
        assert len(lifecycle.get(complaint.complaint_id).photos) == 4

    def test_edit_rejects_blank_replacement(self, lifecycle, file_complaint, as_client):
        complaint = file_complaint()
        with pytest.raises(ValidationError):
            lifecycle.edit(complaint.complaint_id, {"title": "  "}, as_client)

    def test_edit_after_assignment_fails(self, lifecycle, file_complaint, as_client, technician):
        complaint = file_complaint()
        lifecycle.assign(complaint.complaint_id, technician.id)
        with pytest.raises(InvalidTransitionError):
            lifecycle.edit(complaint.complaint_id, {"title": "Late change"}, as_client)

    def test_edit_by_stranger_is_forbidden(self, lifecycle, file_complaint, directory):
        complaint = file_complaint()
        stranger = directory.create_user({"role": "client", "name": "Other", "phone_number": "9000000009"})
        with pytest.raises(ForbiddenError):
            lifecycle.edit(complaint.complaint_id, {"title": "Mine now"}, {"type": "client", "ref": stranger.id})

    def test_admin_may_edit_any_pending(self, lifecycle, file_complaint, as_admin):
        complaint = file_complaint()
        edited = lifecycle.edit(complaint.complaint_id, {"location": "Kharadi"}, as_admin)
        assert edited.location == "Kharadi"

    def test_delete_pending_returns_photo_references(self, lifecycle, file_complaint, media_store):
        complaint = file_complaint(photos=photos(2))

        forgotten = lifecycle.delete(complaint.complaint_id)

        assert [p.stored_id for p in forgotten] == ["p0.jpg", "p1.jpg"]
        assert media_store.forgotten == ["p0.jpg", "p1.jpg"]
        with pytest.raises(NotFoundError):
            lifecycle.get(complaint.complaint_id)

    def test_delete_after_assignment_fails(self, lifecycle, file_complaint, technician):
        complaint = file_complaint()
        lifecycle.assign(complaint.complaint_id, technician.id)
        with pytest.raises(InvalidTransitionError):
            lifecycle.delete(complaint.complaint_id)


class TestConcurrentTransitions:
    def test_stale_reader_loses_assignment_race(
        self, session_factory, clock, settings, file_complaint, technician, other_technician
    ):
        complaint = file_complaint()

        first_session, second_session = session_factory(), session_factory()
        try:
            first = ComplaintLifecycleService(first_session, clock=clock, settings=settings)
            second = ComplaintLifecycleService(second_session, clock=clock, settings=settings)

            # Both sides hold the complaint as read while it was pending
            seen_first = first.get(complaint.complaint_id)
            seen_second = second.get(complaint.complaint_id)
            assert seen_first.status == seen_second.status == ComplaintStatus.PENDING

            first.assign(complaint.complaint_id, technician.id)
            with pytest.raises(InvalidTransitionError):
                second.assign(complaint.complaint_id, other_technician.id)

            winner = second.get(complaint.complaint_id)
            assert winner.assigned_technician_id == technician.id
        finally:
            first_session.close()
            second_session.close()

    def test_stale_edit_is_a_conflict(self, session_factory, clock, settings, file_complaint, as_client):
        complaint = file_complaint()

        first_session, second_session = session_factory(), session_factory()
        try:
            first = ComplaintLifecycleService(first_session, clock=clock, settings=settings)
            second = ComplaintLifecycleService(second_session, clock=clock, settings=settings)
            # The session only keeps instances that are referenced
            seen_first = first.get(complaint.complaint_id)
            stale = second.get(complaint.complaint_id)

            first.edit(complaint.complaint_id, {"title": "First"}, as_client)
            assert (seen_first.version, stale.version) == (2, 1)
            with pytest.raises(ConflictError):
                second.edit(complaint.complaint_id, {"title": "Second"}, as_client)
            assert second.get(complaint.complaint_id).title == "First"
        finally:
            first_session.close()
            second_session.close()

    def test_two_threads_assigning_exactly_one_wins(
        self, session_factory, clock, settings, file_complaint, technician, other_technician
    ):
        complaint = file_complaint()
        barrier = threading.Barrier(2)
        results = {}

        def attempt(technician_id):
            session = session_factory()
            try:
                service = ComplaintLifecycleService(session, clock=clock, settings=settings)
                barrier.wait()
                service.assign(complaint.complaint_id, technician_id)
                results[technician_id] = "ok"
            except (InvalidTransitionError, ConflictError) as e:
                results[technician_id] = e
            finally:
                session.close()

        threads = [
            threading.Thread(target=attempt, args=(tech.id,)) for tech in (technician, other_technician)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        outcomes = list(results.values())
        assert outcomes.count("ok") == 1
        assert sum(isinstance(o, (InvalidTransitionError, ConflictError)) for o in outcomes) == 1

        session = session_factory()
        try:
            stored = UserDirectory(session)
            winner = ComplaintLifecycleService(session, clock=clock, settings=settings).get(complaint.complaint_id)
            winner_id = next(tid for tid, outcome in results.items() if outcome == "ok")
            assert winner.assigned_technician_id == winner_id
            assert stored.resolve(winner_id).name in {technician.name, other_technician.name}
        finally:
            session.close()
