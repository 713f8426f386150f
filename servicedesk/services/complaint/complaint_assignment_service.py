"""
Complaint assignment service: technician binding, auto-assignment and
deletion guards.

A technician may hold any number of assigned or in-progress complaints at
once; the only assignment rule is that the complaint is still pending.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from servicedesk.core.exceptions import ConflictError, ErrorCode, InvalidTransitionError
from servicedesk.models.base import ComplaintStatus, UserRole
from servicedesk.models.complaint import Complaint
from servicedesk.repositories.complaint_repository import ComplaintRepository
from servicedesk.services.base.base_service import BaseService
from servicedesk.services.complaint.complaint_lifecycle_service import ComplaintLifecycleService
from servicedesk.utils.phone import PhoneNormalizer


@dataclass
class AutoAssignOutcome:
    """Result of an automatic assignment attempt."""

    assigned: bool
    complaint_id: str
    reason: Optional[str] = None
    technician_id: Optional[str] = None


class ComplaintAssignmentService(BaseService):
    """
    Business logic for binding technicians to complaints.

    Transitions are delegated to ``ComplaintLifecycleService`` so the
    compare-and-set guard applies to every assignment path.
    """

    def __init__(
        self,
        db_session,
        clock=None,
        settings=None,
        lifecycle: Optional[ComplaintLifecycleService] = None,
    ):
        """
        Initialize assignment service.

        Args:
            db_session: Active database session
            clock: Source of lifecycle timestamps
            settings: Application settings
            lifecycle: Lifecycle service to delegate transitions to
        """
        super().__init__(db_session, clock=clock, settings=settings)
        self.lifecycle = lifecycle or ComplaintLifecycleService(
            db_session, clock=self.clock, settings=self.settings
        )
        self.complaints = ComplaintRepository(db_session)
        self.directory = self.lifecycle.directory

    # -------------------------------------------------------------------------
    # Assignment Operations
    # -------------------------------------------------------------------------

    def assign_technician(
        self,
        complaint_id: str,
        technician_id: str,
        assigned_by: Optional[str] = None,
    ) -> Complaint:
        """
        Assign a pending complaint to an active technician.

        Raises:
            NotFoundError: Complaint or technician does not resolve
            InvalidTransitionError: Complaint is no longer pending
            ValidationError: Technician is inactive
        """
        self._logger.info(
            f"Assigning complaint {complaint_id} to {technician_id}, assigned_by: {assigned_by}"
        )
        return self.lifecycle.assign(complaint_id, technician_id, assigned_by=assigned_by)

    def auto_assign_to_default(
        self,
        complaint_id: str,
        assigned_by: Optional[str] = None,
    ) -> AutoAssignOutcome:
        """
        Hand a complaint to the technician configured as the default.

        The default technician is matched on ``DEFAULT_TECHNICIAN_PHONE``
        in 10 digit form and must be active. Failing to find one is an
        outcome, not an error.
        """
        complaint = self.lifecycle.get(complaint_id)
        reference = complaint.complaint_id

        if complaint.assigned_technician_id or complaint.status != ComplaintStatus.PENDING:
            return AutoAssignOutcome(False, reference, reason="already_assigned")

        default_phone = PhoneNormalizer.to_national(self.settings.DEFAULT_TECHNICIAN_PHONE)
        if not default_phone:
            return AutoAssignOutcome(False, reference, reason="missing_default_phone")

        technician = self.directory.find_technician_by_phone(default_phone)
        if technician is None:
            self._logger.warning(f"No active technician with default phone ending {default_phone[-4:]}")
            return AutoAssignOutcome(False, reference, reason="technician_not_found")

        self.lifecycle.assign(reference, technician.id, assigned_by=assigned_by)
        return AutoAssignOutcome(True, reference, technician_id=technician.id)

    def auto_assign_pending(self, assigned_by: Optional[str] = None) -> List[AutoAssignOutcome]:
        """
        Spread every pending complaint over the active technicians.

        Complaints are taken oldest first; each goes to the technician with
        the lightest active workload at that moment, ties broken by the
        order technicians were loaded. A complaint that is taken by someone
        else in the meantime is skipped.

        Returns:
            One outcome per pending complaint considered
        """
        technicians = self.directory.active_technicians()
        pending = self.complaints.find_pending_oldest_first()
        if not pending:
            return []
        if not technicians:
            self._logger.warning(f"{len(pending)} pending complaint(s) but no active technicians")
            return [AutoAssignOutcome(False, c.complaint_id, reason="technician_not_found") for c in pending]

        load: Dict[str, int] = {
            tech.id: self.complaints.count_active_for_technician(tech.id) for tech in technicians
        }
        order = {tech.id: index for index, tech in enumerate(technicians)}

        outcomes: List[AutoAssignOutcome] = []
        for complaint in pending:
            reference = complaint.complaint_id
            technician_id = min(load, key=lambda tid: (load[tid], order[tid]))
            try:
                self.lifecycle.assign(reference, technician_id, assigned_by=assigned_by)
            except (InvalidTransitionError, ConflictError) as e:
                self._logger.warning(f"Skipping complaint {reference}: {e}")
                outcomes.append(AutoAssignOutcome(False, reference, reason="already_assigned"))
                continue

            load[technician_id] += 1
            outcomes.append(AutoAssignOutcome(True, reference, technician_id=technician_id))

        assigned = sum(1 for outcome in outcomes if outcome.assigned)
        self._logger.info(f"Auto-assigned {assigned} of {len(pending)} pending complaint(s)")
        return outcomes

    # -------------------------------------------------------------------------
    # Workload
    # -------------------------------------------------------------------------

    def technician_workload(self, technician_id: str) -> Dict[str, int]:
        """
        Current complaint counts for a technician.

        Returns:
            ``{total, assigned, in_progress, completed}``
        """
        self.directory.get_user(technician_id, UserRole.TECHNICIAN)
        assigned = self.complaints.count_by_technician_and_status(technician_id, [ComplaintStatus.ASSIGNED])
        in_progress = self.complaints.count_by_technician_and_status(technician_id, [ComplaintStatus.IN_PROGRESS])
        completed = self.complaints.count_by_technician_and_status(technician_id, [ComplaintStatus.RESOLVED])
        return {
            "total": assigned + in_progress + completed,
            "assigned": assigned,
            "in_progress": in_progress,
            "completed": completed,
        }

    # -------------------------------------------------------------------------
    # Deletion Guards
    # -------------------------------------------------------------------------

    def delete_technician(self, technician_id: str) -> None:
        """
        Remove a technician that holds no active work.

        Raises:
            NotFoundError: Unknown technician
            ConflictError: Technician has assigned or in-progress complaints
        """
        with self.transaction():
            technician = self.directory.get_user(technician_id, UserRole.TECHNICIAN)
            active = self.complaints.count_active_for_technician(technician_id)
            if active:
                raise ConflictError(
                    f"Technician {technician.name} has {active} active complaint(s)",
                    error_code=ErrorCode.ACTIVE_WORK_EXISTS,
                    details={"technician_id": technician_id, "active_complaints": active},
                )
            self.directory.users.delete(technician)

        self._logger.info(f"Technician {technician_id} deleted")

    def delete_client(self, client_id: str) -> None:
        """
        Remove a client with no open complaints.

        Raises:
            NotFoundError: Unknown client
            ConflictError: Client has pending, assigned or in-progress complaints
        """
        with self.transaction():
            client = self.directory.get_user(client_id, UserRole.CLIENT)
            open_count = self.complaints.count_open_for_client(client_id)
            if open_count:
                raise ConflictError(
                    f"Client {client.name} has {open_count} open complaint(s)",
                    error_code=ErrorCode.ACTIVE_WORK_EXISTS,
                    details={"client_id": client_id, "open_complaints": open_count},
                )
            self.directory.users.delete(client)

        self._logger.info(f"Client {client_id} deleted")
