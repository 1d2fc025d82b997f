"""Expense service: material purchases plus labor cost snapshots"""

import logging
import math
from typing import Any, Dict, List, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.exceptions import NotFound, UpstreamFailure, ValidationError
from backoffice.models import Expense, Project, Quotation, User
from backoffice.schemas.expense import ExpenseSummary, Material, MaterialInput
from backoffice.services.labor_cost_service import LaborCostAggregator
from backoffice.services.s3_service import FileUpload, S3Service, S3ServiceError

logger = logging.getLogger(__name__)


def material_total(materials: Sequence[Dict[str, Any]]) -> float:
    """Sum of material amounts, ignoring anything that is not a finite number"""
    total = 0.0
    for material in materials:
        amount = material.get("amount")
        if isinstance(amount, (int, float)) and not isinstance(amount, bool) and math.isfinite(amount):
            total += amount
    return total


class ExpenseService:
    """
    Expense records for projects.

    The labor cost is captured as a snapshot when an expense is created or
    updated; later team or attendance changes do not alter stored expenses.
    """

    def __init__(self, db: AsyncSession, storage: S3Service):
        """Initialize with database session and object storage"""
        self.db = db
        self.storage = storage
        self.labor = LaborCostAggregator(db)

    async def _get_project(self, project_id: UUID) -> Project:
        project = await self.db.get(Project, project_id)
        if not project:
            raise NotFound(f"Project with id {project_id} not found")
        return project

    async def _store_materials(
        self,
        materials: Sequence[MaterialInput],
        files: Dict[int, FileUpload],
        existing: Sequence[Dict[str, Any]] = (),
    ) -> List[Dict[str, Any]]:
        """
        Upload the document attached to each material, if any.

        A material without a new upload keeps the document stored at the same
        index of ``existing``. A failed upload is logged and the material is
        kept with its previous document, or none.
        """
        stored = []

        for index, material in enumerate(materials):
            entry = Material(**material.model_dump()).model_dump(mode="json")
            if index < len(existing):
                entry["document_url"] = existing[index].get("document_url")
                entry["document_key"] = existing[index].get("document_key")
            upload = files.get(index)

            if upload is not None:
                try:
                    document = await self.storage.upload_file_async(
                        upload.data,
                        S3Service.EXPENSE_DOCUMENTS,
                        upload.filename,
                        upload.content_type,
                    )
                except S3ServiceError as e:
                    logger.warning(f"Document upload failed for material {index}: {e}")
                else:
                    entry["document_url"] = document["url"]
                    entry["document_key"] = document["key"]

            stored.append(entry)

        return stored

    async def _delete_documents(self, keys: Sequence[str]) -> None:
        for key in keys:
            try:
                await self.storage.delete_object_async(key)
            except S3ServiceError as e:
                raise UpstreamFailure(f"Failed to delete document {key}: {e}")

    async def _discard_documents(self, keys: Sequence[str]) -> None:
        """Best-effort removal of documents no longer referenced by a saved expense"""
        for key in keys:
            try:
                await self.storage.delete_object_async(key)
            except S3ServiceError as e:
                logger.error(f"Orphaned expense document {key}: {e}")

    async def create_expense(
        self,
        project_id: UUID,
        materials: Sequence[MaterialInput],
        files: Dict[int, FileUpload],
        user: User,
    ) -> Expense:
        """
        Create an expense with a fresh labor snapshot.

        Args:
            project_id: Project the expense belongs to
            materials: Material lines
            files: Documents keyed by material index
            user: Creating user

        Raises:
            ValidationError: If no materials are given
            NotFound: If the project does not exist
        """
        if not materials:
            raise ValidationError("At least one material is required")

        await self._get_project(project_id)
        labor_details = await self.labor.calculate(project_id)
        stored = await self._store_materials(materials, files)

        expense = Expense(
            project_id=project_id,
            materials=stored,
            labor_details=labor_details.model_dump(mode="json"),
            total_material_cost=material_total(stored),
            created_by_id=user.id,
        )
        self.db.add(expense)
        await self.db.commit()
        await self.db.refresh(expense)

        logger.info(
            f"Created expense {expense.id} for project {project_id}: "
            f"materials {expense.total_material_cost}, labor {labor_details.total_labor_cost}"
        )
        return expense

    async def list_expenses(
        self, project_id: UUID, page: int = 1, limit: int = 10
    ) -> Tuple[List[Expense], int]:
        await self._get_project(project_id)

        count_result = await self.db.execute(
            select(func.count(Expense.id)).where(Expense.project_id == project_id)
        )
        total = count_result.scalar_one()

        result = await self.db.execute(
            select(Expense)
            .where(Expense.project_id == project_id)
            .order_by(Expense.created_at.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(result.scalars().all()), total

    async def get_expense(self, expense_id: UUID) -> Expense:
        result = await self.db.execute(
            select(Expense)
            .where(Expense.id == expense_id)
            .execution_options(populate_existing=True)
        )
        expense = result.scalar_one_or_none()
        if not expense:
            raise NotFound(f"Expense with id {expense_id} not found")
        return expense

    async def get_expense_detail(self, expense_id: UUID) -> Dict[str, Any]:
        """Expense with its project reference and the quotation net amount"""
        expense = await self.get_expense(expense_id)

        result = await self.db.execute(
            select(Quotation.net_amount).where(Quotation.project_id == expense.project_id)
        )
        return {
            "expense": expense,
            "project_name": expense.project.name if expense.project else None,
            "project_number": expense.project.project_number if expense.project else None,
            "quotation_net_amount": result.scalar_one_or_none(),
        }

    async def update_expense(
        self,
        expense_id: UUID,
        materials: Sequence[MaterialInput],
        files: Dict[int, FileUpload],
        user: User,
    ) -> Expense:
        """
        Replace the materials of an expense and take a new labor snapshot.

        Documents travel with their material index unless a new file is sent
        for that index. Documents of materials that were dropped or replaced
        are removed from storage after the new record is saved; a failed
        removal is logged and does not undo the update.
        """
        if not materials:
            raise ValidationError("At least one material is required")

        expense = await self.get_expense(expense_id)
        previous_keys = {
            m.get("document_key") for m in expense.materials or [] if m.get("document_key")
        }

        labor_details = await self.labor.calculate(expense.project_id)
        stored = await self._store_materials(materials, files, expense.materials or [])
        kept_keys = {m["document_key"] for m in stored if m.get("document_key")}

        expense.materials = stored
        expense.labor_details = labor_details.model_dump(mode="json")
        expense.total_material_cost = material_total(stored)
        await self.db.commit()

        await self._discard_documents(sorted(previous_keys - kept_keys))
        logger.info(f"Updated expense {expense.id} by user {user.id}")
        return await self.get_expense(expense_id)

    async def delete_expense(self, expense_id: UUID) -> None:
        """
        Delete an expense and its stored documents.

        Raises:
            UpstreamFailure: If a document cannot be removed from storage
        """
        expense = await self.get_expense(expense_id)
        keys = [m["document_key"] for m in expense.materials or [] if m.get("document_key")]

        await self._delete_documents(keys)
        await self.db.delete(expense)
        await self.db.commit()
        logger.info(f"Deleted expense {expense_id} and {len(keys)} documents")

    async def expense_summary(self, project_id: UUID) -> ExpenseSummary:
        """Material and labor totals across every expense of a project"""
        await self._get_project(project_id)

        result = await self.db.execute(
            select(Expense).where(Expense.project_id == project_id)
        )
        summary = ExpenseSummary()
        for expense in result.scalars().all():
            labor = expense.labor_details or {}
            workers_cost = sum(w.get("total_salary", 0) for w in labor.get("workers", []))
            driver_cost = (labor.get("driver") or {}).get("total_salary", 0)

            summary.total_material_cost += expense.total_material_cost or 0
            summary.workers_cost += workers_cost
            summary.driver_cost += driver_cost
            summary.total_labor_cost += labor.get("total_labor_cost", 0)

        summary.total_expenses = summary.total_material_cost + summary.total_labor_cost
        return summary
