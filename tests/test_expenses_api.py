"""Tests for expense and labor endpoints"""

import json
import uuid

import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models import Project, User
from backoffice.services.expense_service import material_total
from backoffice.services.s3_service import S3ConnectionError

from tests.conftest import add_attendance, auth_headers_for

MATERIALS = [
    {"description": "Copper pipe 15mm", "invoice_no": "INV-881", "amount": 420.5, "date": "2024-01-08"},
    {"description": "Refrigerant R410A", "invoice_no": "INV-882", "amount": 300},
]


async def create_expense(client: AsyncClient, project: Project, headers: dict, files=None):
    return await client.post(
        f"/api/v1/projects/{project.id}/expenses",
        data={"materials": json.dumps(MATERIALS)},
        files=files,
        headers=headers,
    )


class TestMaterialTotal:
    def test_sums_numeric_amounts(self):
        assert material_total([{"amount": 10}, {"amount": 2.5}]) == 12.5

    def test_ignores_non_numbers(self):
        materials = [{"amount": 10}, {"amount": "5"}, {"amount": None}, {"amount": True}, {}]
        assert material_total(materials) == 10

    def test_ignores_non_finite(self):
        assert material_total([{"amount": float("inf")}, {"amount": float("nan")}, {"amount": 1}]) == 1


@pytest.mark.asyncio
class TestLaborEndpoint:
    """Test GET /api/v1/projects/{id}/labor"""

    async def test_labor_breakdown(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        db_session: AsyncSession,
        staffed_project: Project,
        workers: list[User],
        admin_user: User,
        days,
    ):
        d1, d2 = days(2)
        await add_attendance(db_session, staffed_project, workers[0], d1, admin_user)
        await add_attendance(db_session, staffed_project, workers[1], d2, admin_user)

        response = await async_client.get(
            f"/api/v1/projects/{staffed_project.id}/labor", headers=admin_headers
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert len(data["workers"]) == 2
        assert data["driver"]["days_present"] == 2
        assert data["total_labor_cost"] == 100 + 50 + 2 * 30

    async def test_labor_unknown_project(self, async_client: AsyncClient, admin_headers: dict):
        response = await async_client.get(
            f"/api/v1/projects/{uuid.uuid4()}/labor", headers=admin_headers
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_labor_hidden_from_workers(
        self, async_client: AsyncClient, staffed_project: Project, workers: list[User]
    ):
        response = await async_client.get(
            f"/api/v1/projects/{staffed_project.id}/labor", headers=auth_headers_for(workers[0])
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.asyncio
class TestCreateExpense:
    """Test POST /api/v1/projects/{id}/expenses"""

    async def test_create_expense_snapshots_labor(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        db_session: AsyncSession,
        staffed_project: Project,
        workers: list[User],
        admin_user: User,
        days,
    ):
        d1, d2, d3 = days(3)
        await add_attendance(db_session, staffed_project, workers[0], d1, admin_user)
        await add_attendance(db_session, staffed_project, workers[0], d2, admin_user)

        response = await create_expense(async_client, staffed_project, admin_headers)

        assert response.status_code == status.HTTP_201_CREATED
        expense = response.json()
        assert expense["total_material_cost"] == 720.5
        assert expense["total_labor_cost"] == 2 * 100 + 2 * 30
        assert expense["materials"][0]["date"] == "2024-01-08"

        # New attendance changes the live figure but not the stored snapshot
        await add_attendance(db_session, staffed_project, workers[1], d3, admin_user)

        live = await async_client.get(
            f"/api/v1/projects/{staffed_project.id}/labor", headers=admin_headers
        )
        assert live.json()["total_labor_cost"] == 2 * 100 + 50 + 3 * 30

        stored = await async_client.get(f"/api/v1/expenses/{expense['id']}", headers=admin_headers)
        assert stored.status_code == status.HTTP_200_OK
        assert stored.json()["total_labor_cost"] == 2 * 100 + 2 * 30
        assert stored.json()["project_number"] == staffed_project.project_number

    async def test_create_expense_with_document(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        staffed_project: Project,
        mock_storage,
    ):
        response = await create_expense(
            async_client, staffed_project, admin_headers,
            files={"file-1": ("receipt.pdf", b"%PDF-1.4 receipt", "application/pdf")},
        )

        assert response.status_code == status.HTTP_201_CREATED
        materials = response.json()["materials"]
        assert materials[0]["document_key"] is None
        assert materials[1]["document_key"] == "expense-documents/receipt.pdf"
        mock_storage.upload_file_async.assert_awaited_once()

    async def test_failed_upload_keeps_material(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        staffed_project: Project,
        mock_storage,
    ):
        mock_storage.upload_file_async.side_effect = S3ConnectionError("bucket unavailable")

        response = await create_expense(
            async_client, staffed_project, admin_headers,
            files={"file-0": ("receipt.pdf", b"%PDF-1.4 receipt", "application/pdf")},
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["materials"][0]["document_url"] is None

    async def test_materials_required(
        self, async_client: AsyncClient, admin_headers: dict, staffed_project: Project
    ):
        response = await async_client.post(
            f"/api/v1/projects/{staffed_project.id}/expenses",
            data={"materials": "[]"},
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_invalid_materials_json(
        self, async_client: AsyncClient, admin_headers: dict, staffed_project: Project
    ):
        response = await async_client.post(
            f"/api/v1/projects/{staffed_project.id}/expenses",
            data={"materials": json.dumps([{"description": "No invoice"}])},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"]


@pytest.mark.asyncio
class TestExpenseLifecycle:
    """Test listing, updating, summarising and deleting expenses"""

    async def test_update_refreshes_snapshot(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        db_session: AsyncSession,
        staffed_project: Project,
        workers: list[User],
        admin_user: User,
        days,
    ):
        created = (await create_expense(async_client, staffed_project, admin_headers)).json()
        assert created["total_labor_cost"] == 0

        await add_attendance(db_session, staffed_project, workers[0], days(1)[0], admin_user)

        response = await async_client.patch(
            f"/api/v1/expenses/{created['id']}",
            data={"materials": json.dumps(MATERIALS[:1])},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["total_material_cost"] == 420.5
        assert response.json()["total_labor_cost"] == 130

    async def test_summary_and_list(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        db_session: AsyncSession,
        staffed_project: Project,
        workers: list[User],
        admin_user: User,
        days,
    ):
        await add_attendance(db_session, staffed_project, workers[1], days(1)[0], admin_user)
        await create_expense(async_client, staffed_project, admin_headers)
        await create_expense(async_client, staffed_project, admin_headers)

        response = await async_client.get(
            f"/api/v1/projects/{staffed_project.id}/expenses", headers=admin_headers
        )
        assert response.json()["pagination"]["total"] == 2

        response = await async_client.get(
            f"/api/v1/projects/{staffed_project.id}/expenses/summary", headers=admin_headers
        )
        summary = response.json()
        assert summary["total_material_cost"] == 2 * 720.5
        assert summary["workers_cost"] == 2 * 50
        assert summary["driver_cost"] == 2 * 30
        assert summary["total_labor_cost"] == 2 * 80
        assert summary["total_expenses"] == 2 * 720.5 + 2 * 80

    async def test_delete_removes_documents(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        staffed_project: Project,
        mock_storage,
    ):
        created = (await create_expense(
            async_client, staffed_project, admin_headers,
            files={"file-0": ("receipt.pdf", b"%PDF-1.4 receipt", "application/pdf")},
        )).json()

        response = await async_client.delete(
            f"/api/v1/expenses/{created['id']}", headers=admin_headers
        )

        assert response.status_code == status.HTTP_200_OK
        mock_storage.delete_object_async.assert_awaited_once_with("expense-documents/receipt.pdf")

        response = await async_client.get(
            f"/api/v1/expenses/{created['id']}", headers=admin_headers
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_delete_fails_when_storage_fails(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        staffed_project: Project,
        mock_storage,
    ):
        created = (await create_expense(
            async_client, staffed_project, admin_headers,
            files={"file-0": ("receipt.pdf", b"%PDF-1.4 receipt", "application/pdf")},
        )).json()
        mock_storage.delete_object_async.side_effect = S3ConnectionError("denied")

        response = await async_client.delete(
            f"/api/v1/expenses/{created['id']}", headers=admin_headers
        )
        assert response.status_code == status.HTTP_502_BAD_GATEWAY

    async def test_expense_pdf(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        staffed_project: Project,
    ):
        created = (await create_expense(async_client, staffed_project, admin_headers)).json()

        response = await async_client.get(
            f"/api/v1/expenses/{created['id']}/pdf", headers=admin_headers
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    async def test_team_change_leaves_stored_labor_untouched(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        db_session: AsyncSession,
        staffed_project: Project,
        workers: list[User],
        admin_user: User,
        days,
    ):
        (d1,) = days(1)
        await add_attendance(db_session, staffed_project, workers[0], d1, admin_user)
        await add_attendance(db_session, staffed_project, workers[1], d1, admin_user)

        created = (await create_expense(async_client, staffed_project, admin_headers)).json()
        assert created["total_labor_cost"] == 100 + 50 + 30

        response = await async_client.patch(
            f"/api/v1/projects/{staffed_project.id}/team",
            json={"workers": [str(workers[1].id)], "driver_id": None},
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_200_OK

        live = (await async_client.get(
            f"/api/v1/projects/{staffed_project.id}/labor", headers=admin_headers
        )).json()
        assert [w["user_id"] for w in live["workers"]] == [str(workers[1].id)]
        assert live["driver"]["user_id"] is None
        assert live["total_labor_cost"] == 50

        stored = (await async_client.get(
            f"/api/v1/expenses/{created['id']}", headers=admin_headers
        )).json()
        assert stored["labor_details"] == created["labor_details"]
        assert stored["total_labor_cost"] == 100 + 50 + 30


@pytest.mark.asyncio
class TestExpenseDocuments:
    """Test how expense updates treat stored documents"""

    async def test_update_without_file_keeps_document(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        staffed_project: Project,
        mock_storage,
    ):
        created = (await create_expense(
            async_client, staffed_project, admin_headers,
            files={"file-0": ("receipt.pdf", b"%PDF-1.4 receipt", "application/pdf")},
        )).json()

        response = await async_client.patch(
            f"/api/v1/expenses/{created['id']}",
            data={"materials": json.dumps(MATERIALS[:1])},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        material = response.json()["materials"][0]
        assert material["document_key"] == "expense-documents/receipt.pdf"
        assert material["document_url"] == "https://bucket.example.com/expense-documents/receipt.pdf"
        assert mock_storage.delete_object_async.await_count == 0

    async def test_client_supplied_keys_are_ignored(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        staffed_project: Project,
        mock_storage,
    ):
        created = (await create_expense(async_client, staffed_project, admin_headers)).json()
        foreign = {
            **MATERIALS[0],
            "document_key": "work-completion/someone-elses.jpg",
            "document_url": "https://bucket.example.com/work-completion/someone-elses.jpg",
        }

        response = await async_client.patch(
            f"/api/v1/expenses/{created['id']}",
            data={"materials": json.dumps([foreign])},
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["materials"][0]["document_key"] is None

        response = await async_client.delete(
            f"/api/v1/expenses/{created['id']}", headers=admin_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert mock_storage.delete_object_async.await_count == 0

    async def test_replaced_document_is_deleted(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        staffed_project: Project,
        mock_storage,
    ):
        created = (await create_expense(
            async_client, staffed_project, admin_headers,
            files={"file-0": ("receipt.pdf", b"%PDF-1.4 receipt", "application/pdf")},
        )).json()

        response = await async_client.patch(
            f"/api/v1/expenses/{created['id']}",
            data={"materials": json.dumps(MATERIALS)},
            files={"file-0": ("receipt-v2.pdf", b"%PDF-1.4 corrected", "application/pdf")},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["materials"][0]["document_key"] == "expense-documents/receipt-v2.pdf"
        mock_storage.delete_object_async.assert_awaited_once_with("expense-documents/receipt.pdf")

    async def test_dropped_material_document_is_deleted(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        staffed_project: Project,
        mock_storage,
    ):
        created = (await create_expense(
            async_client, staffed_project, admin_headers,
            files={"file-1": ("receipt.pdf", b"%PDF-1.4 receipt", "application/pdf")},
        )).json()

        response = await async_client.patch(
            f"/api/v1/expenses/{created['id']}",
            data={"materials": json.dumps(MATERIALS[:1])},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        mock_storage.delete_object_async.assert_awaited_once_with("expense-documents/receipt.pdf")

    async def test_storage_failure_after_update_keeps_update(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        staffed_project: Project,
        mock_storage,
    ):
        created = (await create_expense(
            async_client, staffed_project, admin_headers,
            files={"file-1": ("receipt.pdf", b"%PDF-1.4 receipt", "application/pdf")},
        )).json()
        mock_storage.delete_object_async.side_effect = S3ConnectionError("denied")

        response = await async_client.patch(
            f"/api/v1/expenses/{created['id']}",
            data={"materials": json.dumps(MATERIALS[:1])},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["total_material_cost"] == 420.5

        stored = await async_client.get(f"/api/v1/expenses/{created['id']}", headers=admin_headers)
        assert len(stored.json()["materials"]) == 1
