"""분개 API 테스트

작성/전기/역분개 및 오류 종류 → HTTP 상태 매핑
"""

from uuid import uuid4

import pytest


def _body(debit_id: str, credit_id: str, debit: int, credit: int, **extra) -> dict:
    body = {
        "date": "2024-06-15",
        "description": "sale",
        "lines": [
            {"account_id": debit_id, "debit": debit, "credit": 0},
            {"account_id": credit_id, "debit": 0, "credit": credit},
        ],
    }
    body.update(extra)
    return body


class TestCreateEntry:
    """POST /journal-entries"""

    @pytest.mark.asyncio
    async def test_create_draft(self, client, web_chart) -> None:
        response = await client.post(
            "/journal-entries",
            json=_body(web_chart["1000"]["id"], web_chart["4000"]["id"], 10000, 10000, reference="INV-1"),
        )

        assert response.status_code == 200
        entry = response.json()
        assert entry["status"] == "Draft"
        assert entry["date"] == "2024-06-15"
        assert entry["currency"] == "USD"
        assert entry["reference"] == "INV-1"
        assert entry["entry_number"].startswith("JE-")
        assert entry["total_debit"] == entry["total_credit"] == 10000
        assert entry["posted_at"] is None
        assert [line["debit"] for line in entry["lines"]] == [10000, 0]
        assert [line["side"] for line in entry["lines"]] == ["Debit", "Credit"]
        assert [line["amount"] for line in entry["lines"]] == [10000, 10000]

    @pytest.mark.asyncio
    async def test_unbalanced(self, client, web_chart) -> None:
        """불균형은 422"""
        response = await client.post(
            "/journal-entries",
            json=_body(web_chart["1000"]["id"], web_chart["4000"]["id"], 100, 90),
        )

        assert response.status_code == 422
        assert response.json() == {"error": "BUSINESS_RULE", "message": "entry must balance"}

    @pytest.mark.asyncio
    async def test_single_line(self, client, web_chart) -> None:
        response = await client.post(
            "/journal-entries",
            json={
                "date": "2024-06-15",
                "description": "x",
                "lines": [{"account_id": web_chart["1000"]["id"], "debit": 1}],
            },
        )

        assert response.status_code == 400
        assert response.json()["message"] == "entry needs at least two lines"

    @pytest.mark.asyncio
    async def test_negative_amount(self, client, web_chart) -> None:
        body = _body(web_chart["1000"]["id"], web_chart["4000"]["id"], 100, 100)
        body["lines"][0]["debit"] = -100

        response = await client.post("/journal-entries", json=body)

        assert response.status_code == 400
        assert response.json()["message"] == "line 1: amounts must not be negative"

    @pytest.mark.asyncio
    async def test_unknown_account(self, client, web_chart) -> None:
        response = await client.post(
            "/journal-entries",
            json=_body(str(uuid4()), web_chart["4000"]["id"], 100, 100),
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("account not found")

    @pytest.mark.asyncio
    async def test_malformed_date(self, client, web_chart) -> None:
        body = _body(web_chart["1000"]["id"], web_chart["4000"]["id"], 100, 100)
        body["date"] = "15/06/2024"

        response = await client.post("/journal-entries", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION"

    @pytest.mark.asyncio
    async def test_explicit_currency(self, client, web_chart) -> None:
        response = await client.post(
            "/journal-entries",
            json=_body(web_chart["1000"]["id"], web_chart["4000"]["id"], 100, 100, currency="EUR"),
        )

        assert response.status_code == 200
        assert response.json()["currency"] == "EUR"
        assert {line["currency"] for line in response.json()["lines"]} == {"EUR"}


class TestPostEntry:
    """POST /journal-entries/{id}/post"""

    @pytest.mark.asyncio
    async def test_post(self, client, web_year, post_sale) -> None:
        entry = await post_sale()

        assert entry["status"] == "Posted"
        assert entry["posted_at"] is not None

    @pytest.mark.asyncio
    async def test_post_twice(self, client, web_year, post_sale) -> None:
        """Draft가 아니면 409"""
        entry = await post_sale()

        response = await client.post(f"/journal-entries/{entry['id']}/post")

        assert response.status_code == 409
        assert response.json()["message"] == "entry is not in Draft"

    @pytest.mark.asyncio
    async def test_no_fiscal_year(self, client, post_sale) -> None:
        draft = await post_sale(post=False)

        response = await client.post(f"/journal-entries/{draft['id']}/post")

        assert response.status_code == 422
        assert response.json()["message"] == "no fiscal year covers this date"

    @pytest.mark.asyncio
    async def test_closed_year(self, client, web_year, post_sale) -> None:
        draft = await post_sale(post=False)
        await client.post(f"/fiscal-years/{web_year['id']}/close", params={"force": "true"})

        response = await client.post(f"/journal-entries/{draft['id']}/post")

        assert response.status_code == 422
        assert response.json()["message"] == "period closed"

    @pytest.mark.asyncio
    async def test_missing(self, client) -> None:
        response = await client.post(f"/journal-entries/{uuid4()}/post")

        assert response.status_code == 404


class TestReverseEntry:
    """POST /journal-entries/{id}/reverse"""

    @pytest.mark.asyncio
    async def test_reverse(self, client, web_year, post_sale) -> None:
        entry = await post_sale()

        response = await client.post(
            f"/journal-entries/{entry['id']}/reverse",
            json={"date": "2024-06-20", "description": "undo"},
        )

        assert response.status_code == 200
        reversal = response.json()
        assert reversal["status"] == "Posted"
        assert reversal["reversal_of_id"] == entry["id"]
        assert reversal["date"] == "2024-06-20"
        assert [line["credit"] for line in reversal["lines"]] == [10000, 0]
        assert [line["side"] for line in reversal["lines"]] == ["Credit", "Debit"]

        original = (await client.get(f"/journal-entries/{entry['id']}")).json()
        assert original["status"] == "Reversed"
        assert original["reversed_by_id"] == reversal["id"]

        again = await client.post(
            f"/journal-entries/{entry['id']}/reverse",
            json={"date": "2024-06-21", "description": "again"},
        )
        assert again.status_code == 409
        assert again.json()["message"] == "entry already reversed"

    @pytest.mark.asyncio
    async def test_reverse_draft(self, client, web_year, post_sale) -> None:
        draft = await post_sale(post=False)

        response = await client.post(
            f"/journal-entries/{draft['id']}/reverse",
            json={"date": "2024-06-20", "description": "undo"},
        )

        assert response.status_code == 409
        assert response.json()["message"] == "only Posted entries can be reversed"

    @pytest.mark.asyncio
    async def test_reverse_entry_in_closed_year(self, client, web_year, post_sale) -> None:
        """원분개 연도가 마감되면 다음 연도 일자로도 역분개 불가"""
        await client.post(
            "/fiscal-years",
            json={"name": "FY2025", "start_date": "2025-01-01", "end_date": "2025-12-31"},
        )
        entry = await post_sale()
        await client.post(f"/fiscal-years/{web_year['id']}/close", params={"force": "true"})

        response = await client.post(
            f"/journal-entries/{entry['id']}/reverse",
            json={"date": "2025-01-05", "description": "undo"},
        )

        assert response.status_code == 422
        assert response.json()["message"] == "period closed"
        original = (await client.get(f"/journal-entries/{entry['id']}")).json()
        assert original["status"] == "Posted"


class TestDraftMaintenance:
    """PUT / DELETE /journal-entries/{id}"""

    @pytest.mark.asyncio
    async def test_update_draft(self, client, web_chart, post_sale) -> None:
        draft = await post_sale(post=False)

        response = await client.put(
            f"/journal-entries/{draft['id']}",
            json=_body(web_chart["5000"]["id"], web_chart["1000"]["id"], 300, 300),
        )

        assert response.status_code == 200
        updated = response.json()
        assert updated["entry_number"] == draft["entry_number"]
        assert updated["total_debit"] == 300

    @pytest.mark.asyncio
    async def test_update_posted(self, client, web_chart, web_year, post_sale) -> None:
        entry = await post_sale()

        response = await client.put(
            f"/journal-entries/{entry['id']}",
            json=_body(web_chart["5000"]["id"], web_chart["1000"]["id"], 300, 300),
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_delete_draft(self, client, post_sale) -> None:
        draft = await post_sale(post=False)

        response = await client.delete(f"/journal-entries/{draft['id']}")

        assert response.status_code == 204
        assert (await client.get(f"/journal-entries/{draft['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_posted(self, client, web_year, post_sale) -> None:
        entry = await post_sale()

        response = await client.delete(f"/journal-entries/{entry['id']}")

        assert response.status_code == 409
        assert response.json()["message"] == "only Draft entries can be deleted"


class TestListEntries:
    """GET /journal-entries"""

    @pytest.mark.asyncio
    async def test_order_and_filters(self, client, web_year, post_sale) -> None:
        first = await post_sale(on="2024-03-01")
        second = await post_sale(on="2024-05-01", post=False)

        response = await client.get("/journal-entries")
        body = response.json()
        assert [e["id"] for e in body["items"]] == [second["id"], first["id"]]
        assert body["total"] == 2

        posted = await client.get("/journal-entries", params={"status": "Posted"})
        assert [e["id"] for e in posted.json()["items"]] == [first["id"]]

        ranged = await client.get(
            "/journal-entries", params={"date_from": "2024-04-01", "date_to": "2024-12-31"}
        )
        assert [e["id"] for e in ranged.json()["items"]] == [second["id"]]

    @pytest.mark.asyncio
    async def test_inverted_range(self, client) -> None:
        response = await client.get(
            "/journal-entries", params={"date_from": "2024-12-31", "date_to": "2024-01-01"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "date_from must not be after date_to"

    @pytest.mark.asyncio
    async def test_per_page_limit(self, client) -> None:
        response = await client.get("/journal-entries", params={"per_page": 501})

        assert response.status_code == 400
