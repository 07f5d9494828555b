"""Shared fixtures for the Contract Analysis Agent test suite."""

import json
from typing import Any, Dict, List, Optional

import pytest

from contract_analysis.exceptions import EmbeddingUnavailable
from contract_analysis.interfaces.llm import IEmbeddingClient
from contract_analysis.storage import DatabaseManager, DocumentStore


EMBEDDING_DIMENSIONS = 16


class FakeEmbeddingClient(IEmbeddingClient):
    """Deterministic bag-of-words embedding; identical texts embed identically."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[str] = []

    def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.fail:
            raise EmbeddingUnavailable("Embedding service unreachable")
        vector = [0.0] * EMBEDDING_DIMENSIONS
        for word in text.lower().split():
            vector[sum(ord(c) for c in word) % EMBEDDING_DIMENSIONS] += 1.0
        return vector

    def health_check(self) -> bool:
        return not self.fail


def analysis_json(risk_level: str = "High", **overrides: Any) -> str:
    payload: Dict[str, Any] = {
        "riskLevel": risk_level,
        "risks": ["Unlimited liability for the licensee"],
        "compliance": ["Missing data protection clause"],
        "recommendations": ["Cap liability at fees paid"],
        "summary": "The contract carries significant liability exposure.",
    }
    payload.update(overrides)
    return json.dumps(payload)


@pytest.fixture
def db_manager(tmp_path):
    """A file-backed SQLite database with the schema created."""
    manager = DatabaseManager(database_url=f"sqlite:///{tmp_path / 'contracts.db'}")
    manager.init_database()
    yield manager
    manager.close()


@pytest.fixture
def store(db_manager):
    return DocumentStore(db_manager=db_manager)


@pytest.fixture
def embedding_client():
    return FakeEmbeddingClient()


def add_document(
    store: DocumentStore,
    title: str,
    content: str,
    embedding: Optional[List[float]] = None,
    status: str = "completed",
) -> int:
    """Insert a document directly, bypassing the pipeline."""
    if embedding is None:
        embedding = FakeEmbeddingClient().embed(content)
    return store.create_document(title, content, embedding, {"status": status})
