"""Project service: CRUD, lifecycle transitions and team assignment"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.config import settings
from backoffice.exceptions import (
    ConcurrentModification,
    NotFound,
    PreconditionFailed,
    ValidationError,
)
from backoffice.models import (
    ADMIN_ROLES,
    Client,
    Comment,
    CommentAction,
    Expense,
    LPO,
    Project,
    ProjectStatus,
    Quotation,
    User,
    UserRole,
)
from backoffice.monitoring.metrics import record_rejection, record_transition
from backoffice.schemas.project import ProjectCreate, ProjectUpdate, TeamUpdate
from backoffice.services import project_lifecycle as lifecycle
from backoffice.services.document_numbers import generate_project_number
from backoffice.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

SEARCH_COLUMNS = (
    Project.name,
    Project.description,
    Project.location,
    Project.building,
    Project.apartment_number,
    Project.project_number,
)


class ProjectService:
    """
    Service for project records.
    Every write that may race with a status change is a compare-and-swap
    on the status the caller read.
    """

    def __init__(self, db: AsyncSession, notifications: Optional[NotificationService] = None):
        """Initialize with database session and optional notifier"""
        self.db = db
        self.notifications = notifications or NotificationService()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_project(self, project_id: UUID) -> Project:
        """
        Load a project with its relationships, bypassing stale identity-map state.

        Raises:
            NotFound: If the project does not exist
        """
        result = await self.db.execute(
            select(Project)
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        )
        project = result.scalar_one_or_none()
        if not project:
            raise NotFound(f"Project with id {project_id} not found")
        return project

    async def list_projects(
        self,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
        client_id: Optional[UUID] = None,
        search: Optional[str] = None,
        engineer_id: Optional[UUID] = None,
        driver_id: Optional[UUID] = None,
    ) -> Tuple[List[Project], int]:
        """
        Paginated project list, newest first.

        Returns:
            Tuple of (projects on the page, total matching projects)
        """
        filters = []
        if status:
            filters.append(Project.status == status)
        if client_id:
            filters.append(Project.client_id == client_id)
        if engineer_id:
            filters.append(Project.assigned_engineer_id == engineer_id)
        if driver_id:
            filters.append(Project.assigned_driver_id == driver_id)
        if search:
            pattern = f"%{search}%"
            filters.append(or_(*(column.ilike(pattern) for column in SEARCH_COLUMNS)))

        count_result = await self.db.execute(
            select(func.count(Project.id)).where(*filters)
        )
        total = count_result.scalar_one()

        result = await self.db.execute(
            select(Project)
            .where(*filters)
            .order_by(Project.created_at.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(result.scalars().all()), total

    async def get_project_detail(self, project_id: UUID) -> Dict[str, Any]:
        """Project with linked quotation, LPO and expense ids"""
        project = await self.get_project(project_id)

        async def first_id(model) -> Optional[UUID]:
            result = await self.db.execute(
                select(model.id).where(model.project_id == project_id).limit(1)
            )
            return result.scalar_one_or_none()

        return {
            "project": project,
            "quotation_id": await first_id(Quotation),
            "lpo_id": await first_id(LPO),
            "expense_id": await first_id(Expense),
            "allowed_transitions": sorted(lifecycle.allowed_transitions(project.status)),
        }

    async def list_progress_updates(self, project_id: UUID) -> List[Comment]:
        await self.get_project(project_id)
        result = await self.db.execute(
            select(Comment)
            .where(
                Comment.project_id == project_id,
                Comment.action_type == CommentAction.PROGRESS_UPDATE.value,
            )
            .order_by(Comment.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_team(self, project_id: UUID) -> Dict[str, Any]:
        project = await self.get_project(project_id)
        return {"workers": list(project.assigned_workers), "driver": project.assigned_driver}

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_project(self, data: ProjectCreate, user: User) -> Project:
        """
        Create a project in draft status with zero progress.

        Raises:
            NotFound: If the client does not exist
        """
        await self._ensure_client(data.client_id)

        project = Project(
            **data.model_dump(),
            project_number=await generate_project_number(self.db),
            status=ProjectStatus.DRAFT.value,
            progress=0,
            created_by_id=user.id,
        )
        self.db.add(project)
        await self.db.commit()

        logger.info(f"Created project {project.project_number} by user {user.id}")
        return await self.get_project(project.id)

    async def update_project(self, project_id: UUID, data: ProjectUpdate, user: User) -> Project:
        """
        Generic update. Progress is range-checked and a requested status
        must be reachable from the current one. Without an explicit status,
        a progress change applies the same auto-transitions as
        ``update_progress``.
        """
        project = await self.get_project(project_id)
        update_data = data.model_dump(exclude_unset=True)

        if "progress" in update_data:
            lifecycle.validate_progress(update_data["progress"])

        source = "update"
        target = update_data.pop("status", None)
        if target is not None:
            target = ProjectStatus(target).value
            self._validate_transition(project.status, target)
            update_data["status"] = target
        elif "progress" in update_data:
            resolved = lifecycle.resolve_progress_status(project.status, update_data["progress"])
            if resolved != project.status:
                target = resolved
                update_data["status"] = resolved
                source = "progress"

        if update_data.get("client_id"):
            await self._ensure_client(update_data["client_id"])

        for field in ("name", "location", "building", "apartment_number", "client_id"):
            if field in update_data and update_data[field] is None:
                raise ValidationError(f"{field} cannot be empty")

        expected = project.status
        await self._compare_and_swap(project, expected, update_data, user)
        if target is not None and target != expected:
            record_transition(expected, target, source=source)
            self._add_comment(
                project_id, user, CommentAction.STATUS_CHANGE,
                f"Status changed from {expected} to {target}",
            )
        await self.db.commit()

        project = await self.get_project(project_id)
        if target is not None and target != expected:
            await self._notify_status_change(project, expected)
        return project

    async def update_status(self, project_id: UUID, status: str, user: User) -> Project:
        """
        Apply an explicit status transition.

        Raises:
            InvalidTransition: If the move is not in the transition table
            ConcurrentModification: If the status changed underneath us
        """
        project = await self.get_project(project_id)
        current = project.status
        target = ProjectStatus(status).value
        self._validate_transition(current, target)

        await self._compare_and_swap(project, current, {"status": target}, user)
        record_transition(current, target)
        self._add_comment(
            project_id, user, CommentAction.STATUS_CHANGE,
            f"Status changed from {current} to {target}",
        )
        await self.db.commit()

        logger.info(f"Project {project.project_number} moved {current} -> {target}")
        project = await self.get_project(project_id)
        await self._notify_status_change(project, current)
        return project

    async def update_progress(
        self, project_id: UUID, progress: int, comment: Optional[str], user: User
    ) -> Project:
        """
        Set progress, applying the progress-driven auto-transitions.

        An audit comment is written when a comment is given or the value
        changed; stakeholders are notified when the value changed.
        """
        lifecycle.validate_progress(progress)
        project = await self.get_project(project_id)

        old_progress = project.progress
        current = project.status
        new_status = lifecycle.resolve_progress_status(current, progress)

        values: Dict[str, Any] = {"progress": progress}
        if new_status != current:
            values["status"] = new_status

        await self._compare_and_swap(project, current, values, user)
        if new_status != current:
            record_transition(current, new_status, source="progress")
            logger.info(
                f"Project {project.project_number} auto-moved {current} -> {new_status} "
                f"at {progress}% progress"
            )

        if comment or progress != old_progress:
            self._add_comment(
                project_id, user, CommentAction.PROGRESS_UPDATE,
                comment or f"Progress updated from {old_progress}% to {progress}%",
                progress=progress,
            )
        await self.db.commit()

        project = await self.get_project(project_id)
        if progress != old_progress:
            await self._notify_progress(project, progress, comment)
        return project

    async def assign_engineer(self, project_id: UUID, engineer_id: UUID, user: User) -> Tuple[Project, bool]:
        """
        Assign the responsible engineer and notify engineer and admins.

        Returns:
            Tuple of (project, whether the notification was sent)
        """
        project = await self.get_project(project_id)
        engineer = await self.db.get(User, engineer_id)
        if not engineer:
            raise NotFound(f"Engineer with id {engineer_id} not found")

        await self._compare_and_swap(
            project, project.status, {"assigned_engineer_id": engineer.id}, user
        )
        self._add_comment(
            project_id, user, CommentAction.ASSIGNMENT,
            f"Engineer {engineer.full_name} assigned",
        )
        await self.db.commit()
        project = await self.get_project(project_id)

        admins = await self._admin_emails()
        action_url = self._project_url(project)
        sent = await self.notifications.send(
            recipients=[engineer.email, *admins],
            subject=f"Project Assignment: {project.name}",
            template_params={
                "user_name": "Team",
                "project_name": project.name,
                "action_url": action_url,
                "contact_email": settings.contact_email,
            },
            text=(
                f"Dear Team,\n\nEngineer {engineer.first_name} has been assigned to "
                f"project \"{project.name}\".\n\nView project details: {action_url}"
            ),
        )
        return project, sent

    async def assign_team(
        self, project_id: UUID, worker_ids: List[UUID], driver_id: UUID, user: User
    ) -> Project:
        """
        Assign workers and a driver; moves the project to team_assigned.

        Raises:
            PreconditionFailed: If the project is not in lpo_received
            ValidationError: If a worker or the driver is not valid
        """
        if not worker_ids or not driver_id:
            raise ValidationError("Both workers array and driverId are required")

        project = await self.get_project(project_id)
        current = project.status
        if current != ProjectStatus.LPO_RECEIVED.value:
            raise PreconditionFailed("Project must be in 'lpo_received' status")
        self._validate_transition(current, ProjectStatus.TEAM_ASSIGNED.value)

        workers = await self._load_role_users(worker_ids, UserRole.WORKER)
        driver = await self._load_driver(driver_id)

        project.assigned_workers = workers
        await self.db.flush()
        await self._compare_and_swap(
            project,
            current,
            {"status": ProjectStatus.TEAM_ASSIGNED.value, "assigned_driver_id": driver.id},
            user,
        )
        record_transition(current, ProjectStatus.TEAM_ASSIGNED.value, source="team_assignment")
        self._add_comment(
            project_id, user, CommentAction.ASSIGNMENT,
            f"Team assigned: {', '.join(w.full_name for w in workers)}; driver {driver.full_name}",
        )
        await self.db.commit()

        project = await self.get_project(project_id)
        await self._notify_status_change(project, current)
        return project

    async def update_team(self, project_id: UUID, data: TeamUpdate, user: User) -> Project:
        """
        Replace workers and/or driver without touching status.
        A driver explicitly set to null is cleared.
        """
        fields = data.model_fields_set
        if "workers" not in fields and "driver_id" not in fields:
            raise ValidationError("Either workers or driver must be provided")

        project = await self.get_project(project_id)
        values: Dict[str, Any] = {}

        if "workers" in fields:
            if data.workers is None:
                raise ValidationError("Workers must be an array")
            project.assigned_workers = await self._load_role_users(data.workers, UserRole.WORKER)

        if "driver_id" in fields:
            if data.driver_id:
                driver = await self._load_driver(data.driver_id)
                values["assigned_driver_id"] = driver.id
            else:
                values["assigned_driver_id"] = None

        await self.db.flush()
        await self._compare_and_swap(project, project.status, values, user)
        await self.db.commit()
        return await self.get_project(project_id)

    async def delete_project(self, project_id: UUID) -> None:
        """
        Delete a draft project.

        Raises:
            PreconditionFailed: If the project has left draft
        """
        project = await self.get_project(project_id)
        lifecycle.ensure_deletable(project.status)

        await self.db.delete(project)
        await self.db.commit()
        logger.info(f"Deleted draft project {project.project_number}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_transition(self, current: str, target: str) -> None:
        try:
            lifecycle.validate_transition(current, target)
        except Exception:
            record_rejection("not_in_table")
            raise

    async def _compare_and_swap(
        self, project: Project, expected_status: str, values: Dict[str, Any], user: User
    ) -> None:
        """
        Write ``values`` only if the stored status still equals
        ``expected_status``.

        Raises:
            ConcurrentModification: If no row matched
        """
        values = {
            **values,
            "updated_by_id": user.id,
            "updated_at": datetime.utcnow(),
        }
        result = await self.db.execute(
            update(Project)
            .where(Project.id == project.id, Project.status == expected_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            record_rejection("concurrent_modification")
            raise ConcurrentModification(
                f"Project {project.id} was modified concurrently; expected status {expected_status}"
            )

    def _add_comment(
        self,
        project_id: UUID,
        user: User,
        action: CommentAction,
        content: str,
        progress: Optional[int] = None,
    ) -> None:
        self.db.add(
            Comment(
                project_id=project_id,
                user_id=user.id,
                content=content,
                action_type=action.value,
                progress=progress,
            )
        )

    async def _ensure_client(self, client_id: UUID) -> Client:
        client = await self.db.get(Client, client_id)
        if not client:
            raise NotFound(f"Client with id {client_id} not found")
        return client

    async def _load_role_users(self, user_ids: List[UUID], role: UserRole) -> List[User]:
        unique_ids = list(dict.fromkeys(user_ids))
        if not unique_ids:
            return []

        result = await self.db.execute(
            select(User).where(User.id.in_(unique_ids), User.role == role.value)
        )
        users = list(result.scalars().all())
        if len(users) != len(unique_ids):
            raise ValidationError(f"One or more users are not found or not {role.value}s")
        return users

    async def _load_driver(self, driver_id: UUID) -> User:
        result = await self.db.execute(
            select(User).where(User.id == driver_id, User.role == UserRole.DRIVER.value)
        )
        driver = result.scalar_one_or_none()
        if not driver:
            raise ValidationError("Driver not found or not a driver")
        return driver

    async def _admin_emails(self) -> List[str]:
        result = await self.db.execute(
            select(User.email).where(
                User.role.in_(ADMIN_ROLES),
                User.is_active.is_(True),
                User.email != "",
            )
        )
        return list(result.scalars().all())

    async def _stakeholder_emails(self, project: Project) -> List[str]:
        """Client, assigned engineer, admins and super admins"""
        emails = []
        if project.client and project.client.email:
            emails.append(project.client.email)
        if project.assigned_engineer:
            emails.append(project.assigned_engineer.email)
        emails.extend(await self._admin_emails())
        return emails

    def _project_url(self, project: Project) -> str:
        return f"{settings.frontend_url}/app/project-view/{project.id}"

    async def _notify_status_change(self, project: Project, previous_status: str) -> bool:
        if project.status not in lifecycle.NOTIFY_ON_STATUSES:
            return False

        status_label = project.status.replace("_", " ").title()
        action_url = self._project_url(project)
        return await self.notifications.send(
            recipients=[settings.notification_inbox],
            bcc=await self._stakeholder_emails(project),
            subject=f"Status Update: {project.name} ({status_label})",
            template_params={
                "user_name": "Team",
                "project_name": project.name,
                "previous_status": previous_status,
                "status": project.status,
                "action_url": action_url,
                "contact_email": settings.contact_email,
            },
            text=(
                f"Dear Team,\n\nProject {project.name} moved from {previous_status} "
                f"to {project.status}.\n\nView project: {action_url}"
            ),
        )

    async def _notify_progress(self, project: Project, progress: int, comment: Optional[str]) -> bool:
        action_url = self._project_url(project)
        details = f"Details: {comment}\n\n" if comment else ""
        return await self.notifications.send(
            recipients=[settings.notification_inbox],
            bcc=await self._stakeholder_emails(project),
            subject=f"Progress Update: {project.name} ({progress}% Complete)",
            template_params={
                "user_name": "Team",
                "project_name": project.name,
                "progress": progress,
                "progress_details": comment,
                "action_url": action_url,
                "contact_email": settings.contact_email,
            },
            text=(
                f"Dear Team,\n\nThe progress for project {project.name} has been updated "
                f"to {progress}%.\n\n{details}View project: {action_url}"
            ),
        )
