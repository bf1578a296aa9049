"""예산 API 테스트"""

from uuid import uuid4

import pytest


def _budget_body(web_chart, amount: int = 100000, **extra) -> dict:
    body = {
        "name": "H1 2024",
        "start_date": "2024-01-01",
        "end_date": "2024-06-30",
        "lines": [{"account_id": web_chart["5000"]["id"], "amount": amount}],
    }
    body.update(extra)
    return body


class TestBudgets:
    """POST/GET/DELETE /budgets"""

    @pytest.mark.asyncio
    async def test_create_get_list(self, client, web_chart) -> None:
        response = await client.post("/budgets", json=_budget_body(web_chart))

        assert response.status_code == 200, response.text
        budget = response.json()
        assert budget["currency"] == "USD"
        assert budget["total"] == 100000
        assert budget["lines"] == [{"account_id": web_chart["5000"]["id"], "amount": 100000}]

        assert (await client.get(f"/budgets/{budget['id']}")).json() == budget
        assert [b["id"] for b in (await client.get("/budgets")).json()] == [budget["id"]]

    @pytest.mark.asyncio
    async def test_invalid(self, client, web_chart) -> None:
        inverted = await client.post(
            "/budgets", json=_budget_body(web_chart, start_date="2024-07-01")
        )
        assert inverted.status_code == 400

        negative = await client.post("/budgets", json=_budget_body(web_chart, amount=-1))
        assert negative.status_code == 400
        assert negative.json()["message"] == "line 1: amount must not be negative"

        body = _budget_body(web_chart)
        body["lines"][0]["account_id"] = str(uuid4())
        unknown = await client.post("/budgets", json=body)
        assert unknown.status_code == 400

    @pytest.mark.asyncio
    async def test_delete(self, client, web_chart) -> None:
        budget = (await client.post("/budgets", json=_budget_body(web_chart))).json()

        conflict = await client.delete(f"/accounts/{web_chart['5000']['id']}")
        assert conflict.status_code == 409

        response = await client.delete(f"/budgets/{budget['id']}")
        assert response.status_code == 204

        missing = await client.delete(f"/budgets/{budget['id']}")
        assert missing.status_code == 404
        assert (await client.get(f"/budgets/{budget['id']}")).status_code == 404


class TestBudgetVariance:
    """GET /budgets/{id}/variance"""

    @pytest.mark.asyncio
    async def test_variance(self, client, web_chart, web_year) -> None:
        budget = (await client.post("/budgets", json=_budget_body(web_chart))).json()

        for on, amount in [("2024-03-01", 30000), ("2024-07-01", 99999)]:
            entry = await client.post(
                "/journal-entries",
                json={
                    "date": on,
                    "description": "rent",
                    "lines": [
                        {"account_id": web_chart["5000"]["id"], "debit": amount, "credit": 0},
                        {"account_id": web_chart["1000"]["id"], "debit": 0, "credit": amount},
                    ],
                },
            )
            await client.post(f"/journal-entries/{entry.json()['id']}/post")

        response = await client.get(f"/budgets/{budget['id']}/variance")

        assert response.status_code == 200, response.text
        report = response.json()
        assert report["budget_id"] == budget["id"]
        [line] = report["lines"]
        assert line["account"]["code"] == "5000"
        assert line["budget"] == {"amount": 100000, "currency": "USD"}
        assert line["actual"] == {"amount": 30000, "currency": "USD"}
        assert line["variance"] == 70000
        assert line["variance_percent"] == 70.0
        assert (report["total_budget"], report["total_actual"], report["total_variance"]) == (
            100000,
            30000,
            70000,
        )

    @pytest.mark.asyncio
    async def test_missing(self, client) -> None:
        response = await client.get(f"/budgets/{uuid4()}/variance")

        assert response.status_code == 404
