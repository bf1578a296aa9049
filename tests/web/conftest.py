"""
Web API 테스트 픽스처

메모리 저장소를 주입한 앱 + httpx AsyncClient (ASGI 직접 호출)
"""

from typing import Any, AsyncIterator, Awaitable, Callable

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from adapters.mock.memory_store import InMemoryJournalStore
from core.config.loader import LedgerSettings
from web.app import create_app


@pytest.fixture
def web_settings() -> LedgerSettings:
    return LedgerSettings()


@pytest.fixture
def app(web_settings: LedgerSettings) -> FastAPI:
    """메모리 저장소 기반 앱"""
    return create_app(web_settings, InMemoryJournalStore())


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest_asyncio.fixture
async def web_chart(client: httpx.AsyncClient) -> dict[str, dict[str, Any]]:
    """기본 계정 (code → 응답 JSON)"""
    accounts = {}
    for code, name, account_type in [
        ("1000", "Cash", "Asset"),
        ("2000", "Payables", "Liability"),
        ("3000", "Capital", "Equity"),
        ("4000", "Sales", "Revenue"),
        ("5000", "Rent", "Expense"),
    ]:
        response = await client.post(
            "/accounts",
            json={"code": code, "name": name, "account_type": account_type},
        )
        assert response.status_code == 200
        accounts[code] = response.json()
    return accounts


@pytest_asyncio.fixture
async def web_year(client: httpx.AsyncClient) -> dict[str, Any]:
    """FY2024"""
    response = await client.post(
        "/fiscal-years",
        json={"name": "FY2024", "start_date": "2024-01-01", "end_date": "2024-12-31"},
    )
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def post_sale(
    client: httpx.AsyncClient,
    web_chart: dict[str, dict[str, Any]],
) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Cash/Sales 분개 작성 (+ 전기) 헬퍼"""

    async def _post(amount: int = 10000, on: str = "2024-06-15", post: bool = True) -> dict[str, Any]:
        response = await client.post(
            "/journal-entries",
            json={
                "date": on,
                "description": "sale",
                "lines": [
                    {"account_id": web_chart["1000"]["id"], "debit": amount, "credit": 0},
                    {"account_id": web_chart["4000"]["id"], "debit": 0, "credit": amount},
                ],
            },
        )
        assert response.status_code == 200, response.text
        entry = response.json()
        if post:
            response = await client.post(f"/journal-entries/{entry['id']}/post")
            assert response.status_code == 200, response.text
            entry = response.json()
        return entry

    return _post
