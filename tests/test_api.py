import json
from datetime import date

import pytest
from fastapi.testclient import TestClient

from advisor_backend.api import deps
from advisor_backend.main import app
from advisor_backend.schemas.advisor import ChatMessage
from advisor_backend.services.aggregation.aggregator import FinancialDataAggregator, SnapshotState
from advisor_backend.services.ai_agent.advisor_chat import APOLOGY_MESSAGE, AdvisorChatEngine
from advisor_backend.services.ai_agent.insight_generator import InsightGenerator
from advisor_backend.services.credentials.credential_store import CredentialStore, InMemoryCredentialPersistence
from advisor_backend.services.plaid.plaid_connector import PlaidAPIError

from conftest import FakeLinkingProvider, ScriptedBackend, make_account, make_transaction

FOUR_INSIGHTS = [
    {"title": f"Insight {i}", "description": "Something useful.", "type": kind}
    for i, kind in enumerate(["warning", "tip", "positive", "action"])
]


@pytest.fixture
def services():
    provider = FakeLinkingProvider(
        {
            "access-public-good": {
                "accounts": [
                    make_account("chk", current=2000.0, name="Checking"),
                    make_account("sav", current=8000.0, name="Savings", subtype="savings"),
                ],
                "transactions": [
                    make_transaction("t-old", "2024-01-04", -20.0, name="Refund"),
                    make_transaction("t-new", "2024-01-05", 42.5, name="Cafe"),
                ],
                "institution": "First Platypus Bank",
            }
        }
    )
    persistence = InMemoryCredentialPersistence()
    store = CredentialStore(persistence)
    state = SnapshotState()
    aggregator = FinancialDataAggregator(provider, store, state, today=lambda: date(2024, 1, 31))
    backend = ScriptedBackend(
        {"gpt-5.2": "Your finances look healthy.", "gpt-5-mini": json.dumps(FOUR_INSIGHTS)}
    )

    app.dependency_overrides[deps.get_linking_provider] = lambda: provider
    app.dependency_overrides[deps.get_credential_store] = lambda: store
    app.dependency_overrides[deps.get_aggregator] = lambda: aggregator
    app.dependency_overrides[deps.get_chat_engine] = lambda: AdvisorChatEngine(backend, state)
    app.dependency_overrides[deps.get_insight_generator] = lambda: InsightGenerator(backend, state)
    yield {
        "provider": provider,
        "persistence": persistence,
        "store": store,
        "state": state,
        "backend": backend,
    }
    app.dependency_overrides.clear()


@pytest.fixture
def client(services):
    return TestClient(app)


def _link(client) -> None:
    res = client.post("/api/plaid/exchange-token", json={"public_token": "public-good"})
    assert res.status_code == 200, res.text
    assert res.json() == {"success": True}


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "healthy"
    assert client.get("/api/app_health").json()["status"] == "healthy"


def test_create_link_token(client, services):
    res = client.post("/api/plaid/create-link-token")
    assert res.status_code == 200
    assert res.json() == {"link_token": "link-sandbox-123"}


def test_create_link_token_failure_is_generic(client, services):
    async def boom(client_user_id):
        raise PlaidAPIError("link/token/create", 400, "INVALID_REQUEST", "INVALID_FIELD")

    services["provider"].create_link_token = boom
    res = client.post("/api/plaid/create-link-token")
    assert res.status_code == 500
    assert res.json() == {"detail": "Failed to create link token"}


def test_exchange_requires_public_token(client, services):
    assert client.post("/api/plaid/exchange-token", json={}).status_code == 422
    assert client.post("/api/plaid/exchange-token", json={"public_token": ""}).status_code == 422
    assert services["store"].credentials() == []


def test_exchange_stores_credential_and_aggregates(client, services):
    _link(client)

    assert services["persistence"].saved == ["access-public-good"]

    snapshot = client.get("/api/financial-data").json()
    assert [a["id"] for a in snapshot["accounts"]] == ["chk", "sav"]
    assert [t["id"] for t in snapshot["transactions"]] == ["t-new", "t-old"]
    assert snapshot["institution_names"] == ["First Platypus Bank"]


def test_exchange_failure_hides_provider_details(client, services):
    services["provider"].exchange_error = PlaidAPIError(
        "item/public_token/exchange", 400, "INVALID_INPUT", "INVALID_PUBLIC_TOKEN"
    )

    res = client.post("/api/plaid/exchange-token", json={"public_token": "public-bad"})

    assert res.status_code == 500
    assert res.json() == {"detail": "Failed to exchange token"}
    assert services["store"].credentials() == []


def test_financial_data_empty_before_linking(client):
    snapshot = client.get("/api/financial-data").json()
    assert snapshot["accounts"] == []
    assert snapshot["transactions"] == []


def test_refresh_data_reaggregates(client, services):
    services["store"].append("access-public-good")

    res = client.post("/api/refresh-data")

    assert res.status_code == 200
    assert len(res.json()["accounts"]) == 2


def test_models_endpoint(client):
    body = client.get("/api/advisor/models").json()
    assert [m["id"] for m in body["models"]] == ["gpt-5.2", "gpt-5-mini", "gpt-5-nano"]
    assert body["default"] == "gpt-5.2"


def test_chat_returns_assistant_message(client, services):
    _link(client)

    res = client.post(
        "/api/advisor/chat",
        json={"messages": [{"role": "user", "content": "How am I doing?"}]},
    )

    assert res.status_code == 200
    assert res.json() == {"message": {"role": "assistant", "content": "Your finances look healthy."}}
    system_prompt = services["backend"].calls[-1]["messages"][0]["content"]
    assert "outflow $42.50" in system_prompt
    assert "inflow $20.00" in system_prompt


def test_chat_degrades_to_apology(client, services):
    services["backend"].replies = {}
    services["backend"].default = RuntimeError("provider down")

    res = client.post(
        "/api/advisor/chat",
        json={"messages": [{"role": "user", "content": "hi"}], "model": "gpt-5-nano"},
    )

    assert res.status_code == 200
    assert res.json()["message"] == ChatMessage(role="assistant", content=APOLOGY_MESSAGE).model_dump()
    assert services["backend"].models_called == ["gpt-5-nano", "gpt-4o"]


def test_chat_requires_messages(client):
    assert client.post("/api/advisor/chat", json={}).status_code == 422
    assert client.post("/api/advisor/chat", json={"messages": []}).status_code == 422


def test_insights_empty_without_accounts(client, services):
    res = client.get("/api/advisor/insights")
    assert res.status_code == 200
    assert res.json() == {"insights": []}
    assert services["backend"].calls == []


def test_insights_after_linking(client, services):
    _link(client)

    res = client.get("/api/advisor/insights")

    assert res.status_code == 200
    assert res.json()["insights"] == FOUR_INSIGHTS
    # gpt-5.2 answers prose for every prompt, so the generator moves on
    assert services["backend"].models_called == ["gpt-5.2", "gpt-5-mini"]
