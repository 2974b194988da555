"""Shared pytest fixtures for the ticketflow test suite."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from ticketflow.api.deps import get_customer_directory, get_ticket_store
from ticketflow.main import app
from ticketflow.schemas.enums import StageName
from ticketflow.services.enrichment import InMemoryCustomerDirectory
from ticketflow.services.llm_client import StageCall
from ticketflow.services.orchestrator import OrchestratorConfig
from ticketflow.services.ticket_store import InMemoryTicketStore

# ── Sample tickets ──────────────────────────────────────────────────────────

INVOICE_TICKET = (
    "Ticket 5064: EDI 810 invoices rejected by Chewy.com - duplicate "
    "invoice number. Affected PO Numbers: RS41745897, RS41732724"
)

ORDER_TICKET = (
    "EDI 850 purchase order rejected: item not found in catalog. "
    "Error code: ERR-CAT-404. PO 4500012345 needs review."
)

NO_EVIDENCE_TICKET = "The weather is nice today"


# ── HTTP client ─────────────────────────────────────────────────────────────


@pytest.fixture
async def client() -> AsyncClient:  # type: ignore[misc]
    """
    Yield an async HTTP client bound to the FastAPI app.

    Usage::

        async def test_something(client: AsyncClient):
            response = await client.get("/api/v1/health")
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def ticket_store() -> InMemoryTicketStore:  # type: ignore[misc]
    """Fresh ticket store injected into the app for one test."""
    store = InMemoryTicketStore()
    app.dependency_overrides[get_ticket_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_ticket_store, None)


@pytest.fixture(autouse=True)
def empty_directory() -> InMemoryCustomerDirectory:  # type: ignore[misc]
    """Keep API tests independent of the bundled customer list."""
    directory = InMemoryCustomerDirectory()
    app.dependency_overrides[get_customer_directory] = lambda: directory
    yield directory
    app.dependency_overrides.pop(get_customer_directory, None)


# ── Stage configuration ─────────────────────────────────────────────────────


def make_call(stage: StageName, **overrides) -> StageCall:
    """Build a ``StageCall`` with test-friendly defaults."""
    params = {
        "stage": stage,
        "model": "gemini/gemini-2.5-pro"
        if stage == StageName.AI_PRIMARY
        else "groq/moonshotai/kimi-k2-instruct",
        "timeout": 5.0,
        "temperature": 0.1,
        "max_tokens": 500,
        "api_key": "test-key",
        "max_retries": 1,
    }
    params.update(overrides)
    return StageCall(**params)


@pytest.fixture
def stage1_call() -> StageCall:
    return make_call(StageName.AI_PRIMARY)


@pytest.fixture
def stage2_call() -> StageCall:
    return make_call(StageName.AI_SECONDARY)


@pytest.fixture
def ai_config(stage1_call, stage2_call) -> OrchestratorConfig:
    """Configuration with both AI stages on and enrichment off."""
    return OrchestratorConfig(
        stage1=stage1_call,
        stage2=stage2_call,
        ai_enabled=True,
        response_generation_enabled=True,
        enrichment_enabled=False,
    )


@pytest.fixture
def offline_config(stage1_call, stage2_call) -> OrchestratorConfig:
    """Configuration with the AI stages switched off."""
    return OrchestratorConfig(
        stage1=stage1_call,
        stage2=stage2_call,
        ai_enabled=False,
        enrichment_enabled=False,
    )


# ── LiteLLM stand-ins ───────────────────────────────────────────────────────


def fake_completion(content: str | None, total_tokens: int | None = 120):
    """Mimic the parts of a LiteLLM ``ModelResponse`` the client reads."""
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=total_tokens),
    )


@pytest.fixture
def mock_acompletion():
    """Patch ``litellm.acompletion`` as seen by the LLM client."""
    with patch(
        "ticketflow.services.llm_client.litellm.acompletion",
        new_callable=AsyncMock,
    ) as m:
        yield m


@pytest.fixture(autouse=True)
def no_response_schema():
    """Never consult LiteLLM's model map for schema support in tests."""
    with (
        patch(
            "ticketflow.services.ai_extractor.supports_structured_output",
            return_value=False,
        ),
        patch(
            "ticketflow.services.response_generator.supports_structured_output",
            return_value=False,
        ),
    ):
        yield


@pytest.fixture
def completion():
    """Factory for fake LiteLLM responses (see ``fake_completion``)."""
    return fake_completion


@pytest.fixture
def invoice_ticket() -> str:
    return INVOICE_TICKET


@pytest.fixture
def order_ticket() -> str:
    return ORDER_TICKET


@pytest.fixture
def no_evidence_ticket() -> str:
    return NO_EVIDENCE_TICKET


@pytest.fixture
def call_factory():
    """Factory for ``StageCall`` objects (see ``make_call``)."""
    return make_call
