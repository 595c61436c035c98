"""Tests for API Routes."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from fiscalrag.adapters import FAISSVectorStore
from fiscalrag.config import (
    CodeVersion,
    ComparisonPartialFailure,
    ProviderUnavailableError,
    SearchError,
    Settings,
    load_rule_catalog,
)
from fiscalrag.domains.orchestration import (
    Intent,
    OrchestratorResponse,
    RoutingDecision,
    TTLCache,
)
from fiscalrag.domains.search import (
    ArticleCatalog,
    MatchKind,
    SearchResponse,
    SearchResult,
    VectorSearcher,
)

from .deps import build_orchestrator, get_orchestrator
from .main import create_app

INTENT_2026 = Intent(
    target_version=CodeVersion.V2026,
    confidence=0.95,
    matched_cues=["exclusive:2026:iba"],
)


@pytest.fixture
def mock_orchestrator() -> MagicMock:
    """Create a mock orchestrator."""
    mock = MagicMock()
    mock.route.return_value = RoutingDecision(intent=INTENT_2026, versions=[CodeVersion.V2026])
    mock.search = AsyncMock(
        return_value=[
            SearchResponse(
                version=CodeVersion.V2026,
                query="taux iba",
                results=[
                    SearchResult(article_id="Art. 86A", score=1.0, match_kind=MatchKind.KEYWORD)
                ],
                keyword_count=1,
            )
        ]
    )
    mock.process = AsyncMock(
        return_value=OrchestratorResponse(
            answer="Le taux de l'IBA est fixe a l'article 86A.",
            intent=INTENT_2026,
            versions=[CodeVersion.V2026],
        )
    )
    return mock


@pytest.fixture
def client(mock_orchestrator: MagicMock) -> Generator[TestClient, None, None]:
    """Create a test client with mocked dependencies."""
    app = create_app()
    app.dependency_overrides[get_orchestrator] = lambda: mock_orchestrator

    yield TestClient(app)

    app.dependency_overrides.clear()


# --- Health Tests ---


def test_health_endpoint(client: TestClient) -> None:
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "fiscalrag"


def test_api_info_lists_editions(client: TestClient) -> None:
    """Test the info endpoint names both editions."""
    assert client.get("/api").json()["editions"] == ["2025", "2026"]


def test_request_id_header(client: TestClient) -> None:
    """Test that responses include request ID."""
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["x-request-id"] == "abc-123"
    assert "x-response-time-ms" in response.headers


def test_404_for_unknown_routes(client: TestClient) -> None:
    """Test 404 for non-existent routes."""
    assert client.get("/api/nonexistent").status_code == 404


# --- Search Tests ---


def test_search_endpoint(client: TestClient, mock_orchestrator: MagicMock) -> None:
    """Test ranked evidence is returned per edition."""
    response = client.post("/api/search", json={"query": "taux iba", "limit": 5})

    assert response.status_code == 200
    data = response.json()
    assert data["versions"] == ["2026"]
    assert data["total"] == 1
    assert data["responses"][0]["results"][0]["article_id"] == "Art. 86A"
    mock_orchestrator.search.assert_awaited_once_with("taux iba", 5, None)


def test_search_forced_version(client: TestClient, mock_orchestrator: MagicMock) -> None:
    """Test the version field is passed through as an edition."""
    client.post("/api/search", json={"query": "taux", "version": "2025"})
    mock_orchestrator.search.assert_awaited_once_with("taux", 8, CodeVersion.V2025)


def test_search_validation(client: TestClient) -> None:
    """Test request body validation."""
    assert client.post("/api/search", json={"query": ""}).status_code == 422
    assert client.post("/api/search", json={"query": "taux", "limit": 200}).status_code == 422
    assert client.post("/api/search", json={"query": "taux", "version": "2024"}).status_code == 422


def test_search_error_maps_to_400(client: TestClient, mock_orchestrator: MagicMock) -> None:
    """Test SearchError becomes a structured 400."""
    mock_orchestrator.search.side_effect = SearchError("Requete invalide")

    response = client.post("/api/search", json={"query": "taux"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"]["code"] == "SEARCH_INVALID_QUERY"
    assert "request_id" in body


def test_intent_endpoint(client: TestClient) -> None:
    """Test routing decision is exposed."""
    response = client.post("/api/intent", json={"query": "Quel est le taux de l'IBA ?"})

    assert response.status_code == 200
    data = response.json()
    assert data["versions"] == ["2026"]
    assert data["intent"]["confidence"] == 0.95


# --- Chat Tests ---


def test_chat_endpoint(client: TestClient, mock_orchestrator: MagicMock) -> None:
    """Test an answer is returned with its routing."""
    response = client.post(
        "/api/chat",
        json={
            "query": "Et pour l'IBA ?",
            "history": [{"role": "user", "content": "Bonjour"}],
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["answer"].startswith("Le taux de l'IBA")
    assert data["is_comparison"] is False
    history = mock_orchestrator.process.await_args.args[1]
    assert [m.content for m in history] == ["Bonjour"]


def test_chat_rejects_unknown_role(client: TestClient) -> None:
    """Test history roles are user or assistant only."""
    response = client.post(
        "/api/chat",
        json={"query": "taux", "history": [{"role": "system", "content": "x"}]},
    )
    assert response.status_code == 422


def test_comparison_failure_maps_to_503(client: TestClient, mock_orchestrator: MagicMock) -> None:
    """Test a failed comparison branch becomes a 503."""
    mock_orchestrator.process.side_effect = ComparisonPartialFailure(["2025"], "Branche 2025 en echec")

    response = client.post("/api/chat", json={"query": "Différence IS 2025 2026 ?"})

    assert response.status_code == 503
    assert response.json()["error"]["details"]["failed_versions"] == ["2025"]


def test_provider_outage_maps_to_503(client: TestClient, mock_orchestrator: MagicMock) -> None:
    """Test an unreachable LLM becomes a 503."""
    mock_orchestrator.process.side_effect = ProviderUnavailableError("llm", "Ollama down")
    assert client.post("/api/chat", json={"query": "taux"}).status_code == 503


# --- Wiring Tests ---


@pytest.fixture
def wired_client(tmp_path: Path) -> Generator[tuple[TestClient, AsyncMock], None, None]:
    """Test client over a real orchestrator with fake providers."""
    rules = load_rule_catalog()
    settings = Settings(index_dir=tmp_path)
    store = FAISSVectorStore(tmp_path, dimension=4)
    embedder = AsyncMock()
    embedder.embed.return_value = [1.0, 0.0, 0.0, 0.0]
    completion = AsyncMock()
    completion.complete.return_value = "Reponse sourcee."

    searcher = VectorSearcher(embedder, store, TTLCache(), ArticleCatalog.from_rules(rules))
    orchestrator = build_orchestrator(settings, rules, store, searcher, completion)

    app = create_app()
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app), completion
    app.dependency_overrides.clear()


def test_chat_routes_exclusive_theme_to_2026(
    wired_client: tuple[TestClient, AsyncMock],
) -> None:
    """Test an IBA question is answered from the 2026 edition only."""
    client, completion = wired_client

    response = client.post("/api/chat", json={"query": "Quel est le taux de l'IBA ?"})

    assert response.status_code == 200
    data = response.json()
    assert data["versions"] == ["2026"]
    assert data["answer"] == "Reponse sourcee."
    system_prompt = completion.complete.await_args.args[0]
    assert "CONTEXTE CGI" in system_prompt


def test_search_without_partitions_degrades(
    wired_client: tuple[TestClient, AsyncMock],
) -> None:
    """Test missing vector partitions do not fail a search."""
    client, _ = wired_client

    response = client.post("/api/search", json={"query": "xyzzy", "version": "2025"})

    assert response.status_code == 200
    assert response.json()["responses"][0]["vector_count"] == 0
