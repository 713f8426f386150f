"""
Complaint lifecycle service.

Owns the pending -> assigned -> in-progress -> resolved state machine.
Every transition follows the same order of checks (existence, state,
actor, payload) and is written with a compare-and-set on status and
version, so a lost race never overwrites someone else's transition.
"""

from typing import Any, Dict, List, Optional, Union

from servicedesk.core.exceptions import (
    ConflictError,
    ErrorCode,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from servicedesk.models.base import ComplaintStatus, CreatorType, UserRole
from servicedesk.models.complaint import Complaint
from servicedesk.repositories.complaint_repository import ComplaintRepository
from servicedesk.repositories.counter_repository import CounterRepository
from servicedesk.schemas.complaint import (
    ComplaintCreate,
    ComplaintUpdate,
    Creator,
    PhotoRef,
    ResolutionPayload,
)
from servicedesk.services.base.base_service import BaseService
from servicedesk.services.complaint.complaint_id import ComplaintIdGenerator
from servicedesk.services.media.media_store import MediaStore
from servicedesk.services.user.user_directory import UserDirectory

CreatorLike = Union[Creator, Dict[str, Any]]


class ComplaintLifecycleService(BaseService):
    """
    State machine for a single complaint.

    Acting users are always passed explicitly; nothing is read from
    request-scoped state.
    """

    def __init__(
        self,
        db_session,
        clock=None,
        settings=None,
        media_store: Optional[MediaStore] = None,
    ):
        """
        Initialize lifecycle service.

        Args:
            db_session: SQLAlchemy database session
            clock: Source of lifecycle timestamps
            settings: Application settings
            media_store: Where forgotten photo references are dropped, if any
        """
        super().__init__(db_session, clock=clock, settings=settings)
        self.complaints = ComplaintRepository(db_session)
        self.directory = UserDirectory(db_session, clock=self.clock, settings=self.settings)
        self.id_generator = ComplaintIdGenerator(
            CounterRepository(db_session),
            overrides=self.settings.STORE_CODE_MAP,
        )
        self.media_store = media_store

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create(
        self,
        payload: Union[ComplaintCreate, Dict[str, Any]],
        creator: CreatorLike,
    ) -> Complaint:
        """
        File a new complaint in ``pending``.

        Args:
            payload: Title, description, location/store, priority, photos
            creator: Tagged creator reference

        Returns:
            The persisted complaint

        Raises:
            NotFoundError: Creator does not resolve
            ValidationError: Missing fields or too many photos
        """
        creator = self._coerce(Creator, creator)
        self.directory.get_user(creator.ref, UserRole(creator.type.value))

        data = self._coerce(ComplaintCreate, payload)
        self._check_photo_ceiling("photos", len(data.photos))

        with self.transaction():
            complaint = Complaint(
                complaint_id=self.id_generator.next_id(data.store_name or data.location),
                title=data.title,
                description=data.description,
                location=data.location,
                store_name=data.store_name,
                priority=data.priority,
                status=ComplaintStatus.PENDING,
                creator_type=creator.type,
                creator_id=creator.ref,
                photos=[photo.model_dump(mode="json") for photo in data.photos],
                resolution_photos=[],
                created_at=self.clock.now(),
                version=1,
            )
            self.complaints.create(complaint)

        self._logger.info(
            f"Complaint {complaint.complaint_id} created by {creator.type.value} {creator.ref}",
            extra={"complaint_id": complaint.complaint_id, "actor_id": creator.ref},
        )
        return complaint

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def assign(
        self,
        complaint_id: str,
        technician_id: str,
        assigned_by: Optional[str] = None,
    ) -> Complaint:
        """
        Bind a technician to a pending complaint.

        Args:
            complaint_id: Human-facing or internal complaint id
            technician_id: Technician to bind
            assigned_by: Admin performing the assignment, if any

        Raises:
            NotFoundError: Complaint, technician or admin does not resolve
            InvalidTransitionError: Complaint is not pending
            ValidationError: Technician is inactive
        """
        with self.transaction():
            complaint = self._load(complaint_id)
            technician = self.directory.get_user(technician_id, UserRole.TECHNICIAN)
            if assigned_by:
                self.directory.get_user(assigned_by, UserRole.ADMIN)

            self._require_status(complaint, ComplaintStatus.PENDING, ComplaintStatus.ASSIGNED)

            if not technician.is_active:
                raise ValidationError(
                    f"Technician {technician.name} is inactive",
                    field_errors={"technician_id": ["technician is inactive"]},
                    error_code=ErrorCode.INACTIVE_USER,
                )

            now = self.clock.now()
            self._apply(
                complaint,
                ComplaintStatus.PENDING,
                ComplaintStatus.ASSIGNED,
                {
                    "status": ComplaintStatus.ASSIGNED,
                    "assigned_technician_id": technician.id,
                    "assigned_by_id": assigned_by,
                    "assigned_at": now,
                    "updated_at": now,
                },
            )

        self._logger.info(
            f"Complaint {complaint.complaint_id} assigned to technician {technician.id}",
            extra={"complaint_id": complaint.complaint_id, "actor_id": assigned_by},
        )
        return complaint

    def start(
        self,
        complaint_id: str,
        acting_technician_id: str,
        notes: Optional[str] = None,
    ) -> Complaint:
        """
        Move an assigned complaint to ``in-progress``.

        Raises:
            NotFoundError: Complaint does not resolve
            InvalidTransitionError: Complaint is not assigned
            ForbiddenError: Actor is not the assigned technician
        """
        with self.transaction():
            complaint = self._load(complaint_id)
            self._require_status(complaint, ComplaintStatus.ASSIGNED, ComplaintStatus.IN_PROGRESS)
            self._require_assignee(complaint, acting_technician_id)

            now = self.clock.now()
            values: Dict[str, Any] = {
                "status": ComplaintStatus.IN_PROGRESS,
                "started_at": now,
                "updated_at": now,
            }
            if notes and notes.strip():
                values["technician_notes"] = notes.strip()

            self._apply(complaint, ComplaintStatus.ASSIGNED, ComplaintStatus.IN_PROGRESS, values)

        self._logger.info(
            f"Work started on complaint {complaint.complaint_id}",
            extra={"complaint_id": complaint.complaint_id, "actor_id": acting_technician_id},
        )
        return complaint

    def resolve(
        self,
        complaint_id: str,
        acting_technician_id: str,
        payload: Union[ResolutionPayload, Dict[str, Any]],
    ) -> Complaint:
        """
        Close an in-progress complaint with notes, materials and proof.

        ``materials_used`` is mandatory while
        ``COMPLAINT_REQUIRE_MATERIALS_USED`` is on.

        Raises:
            NotFoundError: Complaint does not resolve
            InvalidTransitionError: Complaint is not in progress
            ForbiddenError: Actor is not the assigned technician
            ValidationError: Blank notes/materials or too many photos
        """
        with self.transaction():
            complaint = self._load(complaint_id)
            self._require_status(complaint, ComplaintStatus.IN_PROGRESS, ComplaintStatus.RESOLVED)
            self._require_assignee(complaint, acting_technician_id)

            data = self._coerce(ResolutionPayload, payload)
            field_errors: Dict[str, List[str]] = {}
            if not (data.resolution_notes or "").strip():
                field_errors["resolution_notes"] = ["Resolution notes are required"]
            if self.settings.COMPLAINT_REQUIRE_MATERIALS_USED and not (data.materials_used or "").strip():
                field_errors["materials_used"] = ["Materials used is required"]
            if field_errors:
                raise ValidationError(
                    "Resolution details are incomplete",
                    field_errors=field_errors,
                    error_code=ErrorCode.MISSING_REQUIRED_FIELD,
                )
            self._check_photo_ceiling("resolution_photos", len(data.resolution_photos))

            now = self.clock.now()
            photos = []
            for photo in data.resolution_photos:
                entry = photo.model_dump(mode="json")
                if photo.uploaded_at is None:
                    entry["uploaded_at"] = now.isoformat()
                photos.append(entry)

            values: Dict[str, Any] = {
                "status": ComplaintStatus.RESOLVED,
                "resolved_at": now,
                "updated_at": now,
                "resolution_notes": data.resolution_notes.strip(),
                "materials_used": (data.materials_used or "").strip() or None,
                "resolution_photos": photos,
            }
            if data.technician_notes and data.technician_notes.strip():
                values["technician_notes"] = data.technician_notes.strip()

            self._apply(complaint, ComplaintStatus.IN_PROGRESS, ComplaintStatus.RESOLVED, values)

        self._logger.info(
            f"Complaint {complaint.complaint_id} resolved",
            extra={"complaint_id": complaint.complaint_id, "actor_id": acting_technician_id},
        )
        return complaint

    # -------------------------------------------------------------------------
    # Pending-only edits
    # -------------------------------------------------------------------------

    def edit(
        self,
        complaint_id: str,
        patch: Union[ComplaintUpdate, Dict[str, Any]],
        acting_user: CreatorLike,
    ) -> Complaint:
        """
        Edit a pending complaint.

        Photos listed in ``removed_photo_ids`` are dropped before
        ``new_photos`` are appended; the ceiling applies to the result.

        Raises:
            NotFoundError: Complaint does not resolve
            InvalidTransitionError: Complaint has left pending
            ForbiddenError: Actor is neither the creator nor an admin
            ValidationError: Blank replacement values or too many photos
        """
        actor = self._coerce(Creator, acting_user)
        with self.transaction():
            complaint = self._load(complaint_id)
            self._require_status(complaint, ComplaintStatus.PENDING, ComplaintStatus.PENDING)
            self._require_owner_or_admin(complaint, actor)

            data = self._coerce(ComplaintUpdate, patch)
            removed_ids = set(data.removed_photo_ids)
            kept = [photo for photo in complaint.photos or [] if photo.get("stored_id") not in removed_ids]
            removed = [photo for photo in complaint.photos or [] if photo.get("stored_id") in removed_ids]
            photos = kept + [photo.model_dump(mode="json") for photo in data.new_photos]
            self._check_photo_ceiling("photos", len(photos))

            values: Dict[str, Any] = {"updated_at": self.clock.now()}
            for field in ("title", "description", "location", "priority"):
                value = getattr(data, field)
                if value is not None:
                    values[field] = value
            if removed or data.new_photos:
                values["photos"] = photos

            self._apply(complaint, ComplaintStatus.PENDING, ComplaintStatus.PENDING, values)

        self._logger.info(
            f"Complaint {complaint.complaint_id} edited, {len(removed)} photo(s) removed, "
            f"{len(data.new_photos)} added",
            extra={"complaint_id": complaint.complaint_id, "actor_id": actor.ref},
        )
        self._forget_media(removed)
        return complaint

    def delete(self, complaint_id: str, acting_user: Optional[CreatorLike] = None) -> List[PhotoRef]:
        """
        Delete a pending complaint.

        Args:
            complaint_id: Human-facing or internal complaint id
            acting_user: When given, must be the creator or an admin

        Returns:
            Photo references that are no longer attached to anything
        """
        actor = self._coerce(Creator, acting_user) if acting_user is not None else None
        with self.transaction():
            complaint = self._load(complaint_id)
            self._require_status(complaint, ComplaintStatus.PENDING, ComplaintStatus.PENDING)
            if actor is not None:
                self._require_owner_or_admin(complaint, actor)

            photos = list(complaint.photos or [])
            reference = complaint.complaint_id
            if not self.complaints.delete_if_unchanged(complaint, ComplaintStatus.PENDING):
                self._raise_lost_race(complaint, ComplaintStatus.PENDING, ComplaintStatus.PENDING)

        self._logger.info(f"Complaint {reference} deleted", extra={"complaint_id": reference})
        self._forget_media(photos)
        return [PhotoRef(url=photo["url"], stored_id=photo["stored_id"]) for photo in photos]

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, complaint_id: str) -> Complaint:
        return self._load(complaint_id)

    def list_for_technician(
        self,
        technician_id: str,
        status: Optional[ComplaintStatus] = None,
    ) -> List[Complaint]:
        self.directory.get_user(technician_id, UserRole.TECHNICIAN)
        statuses = [ComplaintStatus(status)] if status else None
        return self.complaints.find_for_technician(technician_id, statuses)

    def list_for_creator(
        self,
        creator: CreatorLike,
        status: Optional[ComplaintStatus] = None,
    ) -> List[Complaint]:
        creator = self._coerce(Creator, creator)
        return self.complaints.find_by_creator(
            creator.type,
            creator.ref,
            ComplaintStatus(status) if status else None,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _load(self, complaint_id: str) -> Complaint:
        complaint = self.complaints.find_by_reference(complaint_id) if complaint_id else None
        if complaint is None:
            raise NotFoundError("Complaint", complaint_id)
        return complaint

    @staticmethod
    def _require_status(
        complaint: Complaint,
        expected: ComplaintStatus,
        target: ComplaintStatus,
    ) -> None:
        if complaint.status != expected:
            if expected == target:
                message = f"Complaint can only be changed while {expected.value}, it is {complaint.status.value}"
            else:
                message = None
            raise InvalidTransitionError(complaint.status.value, target.value, message)

    @staticmethod
    def _require_assignee(complaint: Complaint, technician_id: str) -> None:
        if not technician_id or complaint.assigned_technician_id != technician_id:
            raise ForbiddenError("Complaint is not assigned to this technician", actor_id=technician_id)

    def _require_owner_or_admin(self, complaint: Complaint, actor: Creator) -> None:
        if actor.type == CreatorType.ADMIN:
            self.directory.get_user(actor.ref, UserRole.ADMIN)
            return
        if complaint.creator_type != actor.type or complaint.creator_id != actor.ref:
            raise ForbiddenError("Only the creator or an admin may change this complaint", actor_id=actor.ref)

    def _check_photo_ceiling(self, field: str, count: int) -> None:
        limit = self.settings.MAX_COMPLAINT_PHOTOS
        if count > limit:
            raise ValidationError(
                f"Maximum {limit} photos allowed per complaint",
                field_errors={field: [f"{count} photos given, at most {limit} allowed"]},
                error_code=ErrorCode.LIMIT_EXCEEDED,
            )

    def _apply(
        self,
        complaint: Complaint,
        expected: ComplaintStatus,
        target: ComplaintStatus,
        values: Dict[str, Any],
    ) -> None:
        if not self.complaints.compare_and_set(complaint, expected, values):
            self._raise_lost_race(complaint, expected, target)

    def _raise_lost_race(
        self,
        complaint: Complaint,
        expected: ComplaintStatus,
        target: ComplaintStatus,
    ) -> None:
        reference = complaint.complaint_id
        current = self.complaints.reload(complaint)
        if current is None:
            raise NotFoundError("Complaint", reference)
        if current.status == expected:
            raise ConflictError(
                f"Complaint {reference} was modified concurrently",
                error_code=ErrorCode.CONCURRENT_MODIFICATION,
                details={"complaint_id": reference, "version": current.version},
            )
        raise InvalidTransitionError(current.status.value, target.value)

    def _forget_media(self, photos: List[Dict[str, Any]]) -> None:
        if self.media_store is None:
            return
        for photo in photos:
            stored_id = photo.get("stored_id")
            if not stored_id:
                continue
            try:
                self.media_store.forget(stored_id)
            except (OSError, ValidationError) as e:
                self._logger.warning(f"Could not forget media {stored_id}: {e}")
