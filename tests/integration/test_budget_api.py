"""Integration tests for budget API endpoints."""

from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from pocketledger.models.expense import Expense
from pocketledger.repositories.budget import FxRateRepository


class TestBudgetAPI:
    @pytest.mark.asyncio
    async def test_no_budget(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/v1/budget/2026-03", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {
            "month": "2026-03",
            "budget": "0.00",
            "spent": "0.00",
            "remaining": "0.00",
            "percent": 0,
            "currency": "EGP",
        }

    @pytest.mark.asyncio
    async def test_set_and_read_budget(
        self, client: AsyncClient, auth_headers: dict, db_session: AsyncSession, user_id
    ):
        await FxRateRepository(db_session).upsert("USD", "EGP", 50.0)
        db_session.add(
            Expense(
                user_id=user_id,
                amount=300,
                currency_code="USD",
                description="Coffee",
                category="Food",
                expense_date=date(2026, 3, 2),
            )
        )
        await db_session.commit()

        put = await client.put(
            "/api/v1/budget/2026-03", json={"amount": "200.00", "currency": "EGP"}, headers=auth_headers
        )
        assert put.status_code == 200

        response = await client.get("/api/v1/budget/2026-03", headers=auth_headers)
        data = response.json()
        assert data["budget"] == "200.00"
        assert data["spent"] == "150.00"
        assert data["remaining"] == "50.00"
        assert data["percent"] == 75

    @pytest.mark.asyncio
    async def test_overspent_remaining_is_zero(
        self, client: AsyncClient, auth_headers: dict, db_session: AsyncSession, user_id
    ):
        db_session.add(
            Expense(
                user_id=user_id,
                amount=25000,
                description="Rent share",
                category="Bills",
                expense_date=date(2026, 3, 1),
            )
        )
        await db_session.commit()
        await client.put("/api/v1/budget/2026-03", json={"amount": "100"}, headers=auth_headers)

        data = (await client.get("/api/v1/budget/2026-03", headers=auth_headers)).json()

        assert data["remaining"] == "0.00"
        assert data["percent"] == 250

    @pytest.mark.asyncio
    async def test_invalid_month(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/v1/budget/2026-3", headers=auth_headers)

        assert response.status_code == 422
        assert response.json()["error_code"] == "VAL_001"

    @pytest.mark.asyncio
    async def test_non_positive_budget_rejected(self, client: AsyncClient, auth_headers: dict):
        response = await client.put(
            "/api/v1/budget/2026-03", json={"amount": "0"}, headers=auth_headers
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/v1/budget/2026-03")

        assert response.status_code == 401
