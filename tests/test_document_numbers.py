"""Tests for business document numbering"""

from datetime import datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.services.document_numbers import (
    generate_project_number,
    invoice_number,
    related_document_number,
)

from tests.conftest import make_project


def test_related_document_number():
    assert related_document_number("PRJ-202401-0007", "WCP") == "WCP-202401-0007"
    assert related_document_number("LEGACY", "QTN") == "QTN-LEGACY"


def test_invoice_number_uses_invoice_month():
    now = datetime(2024, 3, 2)
    assert invoice_number("PRJ-202401-0007", now) == "INV-202403-0007"


@pytest.mark.asyncio
class TestProjectNumbers:
    async def test_first_number_of_month(self, db_session: AsyncSession):
        number = await generate_project_number(db_session, datetime(2024, 1, 15))
        assert number == "PRJ-202401-0001"

    async def test_sequence_continues_within_month(
        self, db_session: AsyncSession, sample_client, admin_user
    ):
        await make_project(db_session, sample_client, admin_user, number="PRJ-202401-0041")

        assert await generate_project_number(db_session, datetime(2024, 1, 31)) == "PRJ-202401-0042"
        assert await generate_project_number(db_session, datetime(2024, 2, 1)) == "PRJ-202402-0001"
