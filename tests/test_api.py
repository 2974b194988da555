"""Tests for the HTTP API."""

from __future__ import annotations

import json

from httpx import AsyncClient

from ticketflow.api.deps import get_orchestrator_config
from ticketflow.core.constants import EXTRACTION_FAILED_MESSAGE
from ticketflow.main import app
from ticketflow.schemas.enums import DocumentType
from ticketflow.schemas.ticket import TicketRecord

API = "/api/v1"


def _record_payload(**overrides) -> dict:
    record = TicketRecord(
        id="5064",
        document_type=DocumentType.INVOICE,
        supplier="Zero Egg Count",
        buyer="Chewy",
        error_type="DUPLICATE_INVOICE",
        affected_pos=["RS41745897"],
        **overrides,
    )
    return record.to_payload()


class TestHealth:
    """Tests for the health and metrics endpoints."""

    async def test_health(self, client: AsyncClient):
        response = await client.get(f"{API}/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    async def test_ai_health(self, client: AsyncClient):
        response = await client.get(f"{API}/health/ai")

        assert response.status_code == 200
        body = response.json()
        assert body["stage1"]["model"]
        assert isinstance(body["stage2"]["configured"], bool)

    async def test_metrics(self, client: AsyncClient):
        response = await client.get(f"{API}/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")


class TestRequestId:
    """Tests for the request-id middleware."""

    async def test_generated(self, client: AsyncClient):
        response = await client.get(f"{API}/health")
        assert response.headers["X-Request-ID"]

    async def test_echoed(self, client: AsyncClient):
        response = await client.get(
            f"{API}/health", headers={"X-Request-ID": "abc-123"}
        )
        assert response.headers["X-Request-ID"] == "abc-123"


class TestExtract:
    """Tests for ``POST /extract``."""

    async def test_deterministic_extraction(
        self, client: AsyncClient, invoice_ticket
    ):
        response = await client.post(
            f"{API}/extract",
            json={"rawText": invoice_ticket, "aiEnabled": False},
        )

        assert response.status_code == 200
        body = response.json()
        record = body["outcome"]["record"]
        assert record["documentType"] == "810"
        assert record["affectedPOs"] == ["RS41745897", "RS41732724"]
        assert body["outcome"]["producer"] == "deterministic"
        assert body["outcome"]["overallSuccess"] is True
        assert body["outcome"]["fallbackUsed"] is True
        assert 0.0 <= body["confidence"] <= 1.0
        assert body["workflow"]["metadata"]["confidence"] == body["confidence"]
        assert "responseGeneration" not in body["outcome"]

    async def test_ai_extraction(
        self,
        client: AsyncClient,
        ai_config,
        mock_acompletion,
        completion,
        invoice_ticket,
    ):
        app.dependency_overrides[get_orchestrator_config] = lambda: ai_config
        mock_acompletion.side_effect = [
            completion(json.dumps({"documentType": "810", "tradingPartner": "Chewy"})),
            completion(
                json.dumps(
                    {
                        "customerResponse": "On it.",
                        "internalDocumentation": "Duplicate invoice.",
                    }
                )
            ),
        ]

        try:
            response = await client.post(
                f"{API}/extract",
                json={"rawText": invoice_ticket, "aiEnabled": True},
            )
        finally:
            app.dependency_overrides.pop(get_orchestrator_config, None)

        assert response.status_code == 200
        body = response.json()
        assert body["outcome"]["producer"] == "ai-primary"
        assert body["confidence"] == 0.95
        assert body["outcome"]["responseGeneration"]["customerResponse"] == "On it."

    async def test_no_evidence_is_422(self, client: AsyncClient, no_evidence_ticket):
        response = await client.post(
            f"{API}/extract",
            json={"rawText": no_evidence_ticket, "aiEnabled": False},
        )

        assert response.status_code == 422
        assert response.json()["detail"] == EXTRACTION_FAILED_MESSAGE

    async def test_blank_text_rejected(self, client: AsyncClient):
        response = await client.post(f"{API}/extract", json={"rawText": "   "})
        assert response.status_code == 422

    async def test_server_default_config_used(
        self, client: AsyncClient, offline_config, order_ticket
    ):
        app.dependency_overrides[get_orchestrator_config] = lambda: offline_config
        try:
            response = await client.post(f"{API}/extract", json={"rawText": order_ticket})
        finally:
            app.dependency_overrides.pop(get_orchestrator_config, None)

        assert response.status_code == 200
        stages = response.json()["outcome"]["stages"]
        assert stages[0]["error"] == "AI stage disabled"


class TestWorkflow:
    """Tests for ``POST /workflow``."""

    async def test_graph_for_record(self, client: AsyncClient):
        response = await client.post(f"{API}/workflow", json=_record_payload())

        assert response.status_code == 200
        body = response.json()
        assert body["nodes"][2]["label"] == "Error: DUPLICATE_INVOICE"
        assert body["edges"][0]["id"] == "edge-0"
        assert body["metadata"]["documentType"] == "810"

    async def test_invalid_record(self, client: AsyncClient):
        response = await client.post(f"{API}/workflow", json={"id": "1"})
        assert response.status_code == 422


class TestTickets:
    """Tests for the saved-ticket endpoints."""

    async def test_save_and_fetch(self, client: AsyncClient, ticket_store):
        saved = await client.post(
            f"{API}/tickets/5064", json={"record": _record_payload()}
        )

        assert saved.status_code == 200
        assert saved.json()["ticketId"] == "5064"
        assert len(saved.json()["workflow"]["nodes"]) == 5

        fetched = await client.get(f"{API}/tickets/5064")
        assert fetched.status_code == 200
        assert fetched.json()["record"]["buyer"] == "Chewy"

    async def test_fetch_missing(self, client: AsyncClient, ticket_store):
        response = await client.get(f"{API}/tickets/nope")
        assert response.status_code == 404

    async def test_recent(self, client: AsyncClient, ticket_store):
        for ticket_id in ("1", "2", "3"):
            await client.post(
                f"{API}/tickets/{ticket_id}", json={"record": _record_payload()}
            )

        response = await client.get(f"{API}/tickets", params={"limit": 2})

        assert response.status_code == 200
        assert [t["ticketId"] for t in response.json()] == ["3", "2"]

    async def test_recent_limit_validated(self, client: AsyncClient, ticket_store):
        response = await client.get(f"{API}/tickets", params={"limit": 0})
        assert response.status_code == 422

    async def test_patch_regenerates(self, client: AsyncClient, ticket_store):
        await client.post(f"{API}/tickets/5064", json={"record": _record_payload()})

        response = await client.patch(
            f"{API}/tickets/5064",
            json={"documentType": "856", "errorType": "invalid tracking"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["record"]["documentType"] == "856"
        assert body["record"]["errorType"] == "INVALID_TRACKING"
        assert body["workflow"]["nodes"][0]["label"] == "ASN Created"
        assert ticket_store.get("5064").record.document_type == DocumentType.SHIP_NOTICE

    async def test_patch_missing(self, client: AsyncClient, ticket_store):
        response = await client.patch(f"{API}/tickets/nope", json={"buyer": "Target"})
        assert response.status_code == 404

    async def test_patch_invalid(self, client: AsyncClient, ticket_store):
        await client.post(f"{API}/tickets/5064", json={"record": _record_payload()})

        response = await client.patch(
            f"{API}/tickets/5064", json={"documentType": None}
        )

        assert response.status_code == 422
        assert ticket_store.get("5064").record.document_type == DocumentType.INVOICE


class TestPatterns:
    """Tests for the error-pattern catalogue endpoints."""

    async def test_list(self, client: AsyncClient):
        response = await client.get(f"{API}/patterns")

        assert response.status_code == 200
        assert len(response.json()) == 8

    async def test_filters(self, client: AsyncClient):
        response = await client.get(
            f"{API}/patterns", params={"document_type": "810", "severity": "high"}
        )

        assert response.status_code == 200
        assert {p["id"] for p in response.json()} == {
            "missing-line-items",
            "price-mismatch",
        }

    async def test_get_one(self, client: AsyncClient):
        response = await client.get(f"{API}/patterns/duplicate-invoice")

        assert response.status_code == 200
        body = response.json()
        assert body["errorCode"] == "ERR_810_DUP"
        assert body["severity"] == "medium"

    async def test_get_missing(self, client: AsyncClient):
        response = await client.get(f"{API}/patterns/volcano")
        assert response.status_code == 404
