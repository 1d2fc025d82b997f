"""Tests for quotations, LPOs, invoices and work completion"""

from datetime import datetime

import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models import Project, User
from backoffice.reports import InvoiceGenerator
from backoffice.schemas.quotation import QuotationItem
from backoffice.services.quotation_service import price_items

from tests.conftest import auth_headers_for

QUOTATION = {
    "items": [
        {"description": "Repaint lobby walls", "quantity": 2, "unit_price": 450},
        {"description": "Replace light fittings", "quantity": 10, "unit_price": 35},
    ],
    "scope_of_work": ["Painting", "Electrical"],
}


async def add_quotation(client: AsyncClient, project: Project, headers: dict, **overrides):
    return await client.post(
        f"/api/v1/projects/{project.id}/quotation",
        json={**QUOTATION, **overrides},
        headers=headers,
    )


async def add_lpo(client: AsyncClient, project: Project, headers: dict, files=None):
    return await client.post(
        f"/api/v1/projects/{project.id}/lpo",
        data={"lpo_number": "LPO-7781", "lpo_date": "2024-01-10", "supplier": "Marina Towers"},
        files=files,
        headers=headers,
    )


def test_price_items():
    priced = price_items(
        [QuotationItem(description="A", quantity=3, unit_price=10.2)], vat_percentage=5
    )

    assert priced["items"][0]["total_price"] == 30.6
    assert priced["subtotal"] == 30.6
    assert priced["vat_amount"] == 1.53
    assert priced["net_amount"] == 32.13


@pytest.mark.asyncio
class TestQuotations:
    async def test_create_computes_totals(
        self, async_client: AsyncClient, admin_headers: dict, sample_project: Project
    ):
        response = await add_quotation(async_client, sample_project, admin_headers)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["quotation_number"] == "QTN-202401-0001"
        assert data["subtotal"] == 1250.0
        assert data["vat_percentage"] == 5.0
        assert data["vat_amount"] == 62.5
        assert data["net_amount"] == 1312.5

    async def test_one_quotation_per_project(
        self, async_client: AsyncClient, admin_headers: dict, sample_project: Project
    ):
        await add_quotation(async_client, sample_project, admin_headers)
        response = await add_quotation(async_client, sample_project, admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_update_reprices(
        self, async_client: AsyncClient, admin_headers: dict, sample_project: Project
    ):
        await add_quotation(async_client, sample_project, admin_headers)

        response = await async_client.patch(
            f"/api/v1/projects/{sample_project.id}/quotation",
            json={"vat_percentage": 0},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["net_amount"] == 1250.0

    async def test_items_required(
        self, async_client: AsyncClient, admin_headers: dict, sample_project: Project
    ):
        response = await add_quotation(async_client, sample_project, admin_headers, items=[])
        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.asyncio
class TestLPO:
    async def test_record_lpo_with_document(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        sample_project: Project,
        mock_storage,
    ):
        response = await add_lpo(
            async_client, sample_project, admin_headers,
            files={"document": ("lpo.pdf", b"%PDF-1.4 lpo", "application/pdf")},
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["document_url"] == "https://bucket.example.com/lpo-documents/lpo.pdf"

        response = await async_client.get(
            f"/api/v1/projects/{sample_project.id}/lpo", headers=admin_headers
        )
        assert response.json()["lpo_number"] == "LPO-7781"

    async def test_one_lpo_per_project(
        self, async_client: AsyncClient, admin_headers: dict, sample_project: Project
    ):
        await add_lpo(async_client, sample_project, admin_headers)
        response = await add_lpo(async_client, sample_project, admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.asyncio
class TestInvoice:
    async def test_invoice_requires_quotation(
        self, async_client: AsyncClient, admin_headers: dict, sample_project: Project
    ):
        response = await async_client.get(
            f"/api/v1/projects/{sample_project.id}/invoice", headers=admin_headers
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Quotation not found for this project"

    async def test_invoice_requires_lpo(
        self, async_client: AsyncClient, admin_headers: dict, sample_project: Project
    ):
        await add_quotation(async_client, sample_project, admin_headers)

        response = await async_client.get(
            f"/api/v1/projects/{sample_project.id}/invoice", headers=admin_headers
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "LPO not found for this project"

    async def test_invoice_data(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        db_session: AsyncSession,
        sample_project: Project,
    ):
        await add_quotation(async_client, sample_project, admin_headers)
        await add_lpo(async_client, sample_project, admin_headers)

        invoice = await InvoiceGenerator(db_session).generate_invoice(
            sample_project.id, now=datetime(2024, 2, 5)
        )

        assert invoice["invoice_number"] == "INV-202402-0001"
        assert invoice["date"] == "05-02-2024"
        assert invoice["order_number"] == "LPO-7781"
        assert invoice["subject"] == "Painting, Electrical"
        assert [p["sno"] for p in invoice["products"]] == [1, 2]
        assert invoice["summary"]["total_receivable"] == 1312.5
        assert invoice["amount_in_words"] == (
            "One Thousand Three Hundred Twelve Dirhams and Fifty Fils"
        )
        assert invoice["vendee"]["name"] == "Marina Towers LLC"
        assert invoice["prepared_by"]["name"] == "Alice Tester"

    async def test_invoice_pdf(
        self, async_client: AsyncClient, admin_headers: dict, sample_project: Project
    ):
        await add_quotation(async_client, sample_project, admin_headers)
        await add_lpo(async_client, sample_project, admin_headers)

        response = await async_client.get(
            f"/api/v1/projects/{sample_project.id}/invoice/pdf", headers=admin_headers
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.content.startswith(b"%PDF")
        assert "INV-" in response.headers["content-disposition"]

    async def test_invoice_hidden_from_workers(
        self, async_client: AsyncClient, sample_project: Project, workers: list[User]
    ):
        response = await async_client.get(
            f"/api/v1/projects/{sample_project.id}/invoice", headers=auth_headers_for(workers[0])
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.asyncio
class TestWorkCompletion:
    async def test_upload_images_and_certificate(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        staffed_project: Project,
        mock_storage,
    ):
        response = await async_client.post(
            f"/api/v1/projects/{staffed_project.id}/work-completion/images",
            data={"titles": ["Before", "After"]},
            files=[
                ("files", ("before.png", b"\x89PNG before", "image/png")),
                ("files", ("after.png", b"\x89PNG after", "image/png")),
            ],
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_201_CREATED
        completion = response.json()
        assert completion["completion_number"] == "WCP-202401-0002"
        assert [img["title"] for img in completion["images"]] == ["Before", "After"]

        response = await async_client.get(
            f"/api/v1/projects/{staffed_project.id}/completion", headers=admin_headers
        )
        report = response.json()
        assert report["reference_number"] == "WCP-202401-0002"
        assert report["lpo_number"] == "Not available"
        assert [p["caption"] for p in report["site_pictures"]] == ["Before", "After"]

        response = await async_client.get(
            f"/api/v1/projects/{staffed_project.id}/completion/pdf", headers=admin_headers
        )
        assert response.content.startswith(b"%PDF")

    async def test_titles_must_match_files(
        self, async_client: AsyncClient, admin_headers: dict, staffed_project: Project
    ):
        response = await async_client.post(
            f"/api/v1/projects/{staffed_project.id}/work-completion/images",
            data={"titles": ["Only one"]},
            files=[
                ("files", ("a.png", b"\x89PNG a", "image/png")),
                ("files", ("b.png", b"\x89PNG b", "image/png")),
            ],
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_delete_image(
        self,
        async_client: AsyncClient,
        admin_headers: dict,
        staffed_project: Project,
        mock_storage,
    ):
        response = await async_client.post(
            f"/api/v1/projects/{staffed_project.id}/work-completion/images",
            data={"titles": ["After"]},
            files=[("files", ("after.png", b"\x89PNG after", "image/png"))],
            headers=admin_headers,
        )
        image_id = response.json()["images"][0]["id"]

        response = await async_client.delete(
            f"/api/v1/projects/{staffed_project.id}/work-completion/images/{image_id}",
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["images"] == []
        mock_storage.delete_object_async.assert_awaited_once_with("work-completion/after.png")

    async def test_missing_completion(
        self, async_client: AsyncClient, admin_headers: dict, staffed_project: Project
    ):
        response = await async_client.get(
            f"/api/v1/projects/{staffed_project.id}/work-completion", headers=admin_headers
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND
