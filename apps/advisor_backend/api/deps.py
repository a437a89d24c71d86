"""Process-wide service instances and the FastAPI dependencies that expose them.

Tests swap any of these through ``app.dependency_overrides``.
"""

from advisor_backend.services.aggregation.aggregator import FinancialDataAggregator, SnapshotState
from advisor_backend.services.ai_agent.advisor_chat import AdvisorChatEngine
from advisor_backend.services.ai_agent.insight_generator import InsightGenerator
from advisor_backend.services.ai_agent.llm_client import OpenAICompletionBackend
from advisor_backend.services.credentials.credential_store import CredentialStore, build_credential_store
from advisor_backend.services.plaid.plaid_connector import LinkingProvider, plaid_connector

credential_store = build_credential_store()
snapshot_state = SnapshotState()
financial_aggregator = FinancialDataAggregator(plaid_connector, credential_store, snapshot_state)

completion_backend = OpenAICompletionBackend()
advisor_chat_engine = AdvisorChatEngine(completion_backend, snapshot_state)
insight_generator = InsightGenerator(completion_backend, snapshot_state)


def get_linking_provider() -> LinkingProvider:
    return plaid_connector


def get_credential_store() -> CredentialStore:
    return credential_store


def get_aggregator() -> FinancialDataAggregator:
    return financial_aggregator


def get_chat_engine() -> AdvisorChatEngine:
    return advisor_chat_engine


def get_insight_generator() -> InsightGenerator:
    return insight_generator
