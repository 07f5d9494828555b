"""Integration tests for the contract analysis pipeline.

The pipeline runs against a real SQLite document store with fake language
model clients, so every workflow stage and status write is exercised.
"""

from unittest.mock import Mock

import pytest

from conftest import FakeEmbeddingClient, add_document, analysis_json
from contract_analysis.analysis import AnalysisService
from contract_analysis.config import AgentConfig
from contract_analysis.exceptions import (
    EmbeddingUnavailable,
    GenerationError,
    GenerationTimeout,
    NotificationError,
    PersistenceError,
    RetrievalDegraded,
    ValidationError,
)
from contract_analysis.models import DocumentStatus, RiskLevel
from contract_analysis.pipeline import ContractAnalysisPipeline
from contract_analysis.retrieval import RetrievalEngine
from contract_analysis.setup_database import SAMPLE_CONTRACTS, seed_sample_contracts
from contract_analysis.storage import DocumentStore


NDA_TEXT = (
    "MUTUAL NON-DISCLOSURE AGREEMENT. The confidentiality obligations of each "
    "recipient survive termination of this agreement for five years."
)


class FailingStatusStore(DocumentStore):
    """Store whose status writes fail for the given statuses."""

    def __init__(self, db_manager, failing_statuses):
        super().__init__(db_manager=db_manager)
        self.failing_statuses = set(failing_statuses)

    def update_status(self, document_id, status):
        if status in self.failing_statuses:
            raise PersistenceError("Connection lost", operation="update_status")
        super().update_status(document_id, status)


class FailingAnalysisStore(DocumentStore):
    """Store that cannot persist analyses."""

    def save_analysis(self, document_id, analysis, report):
        raise PersistenceError("Disk full", operation="save_analysis")


@pytest.fixture
def generation_client():
    client = Mock()
    client.generate.side_effect = [analysis_json("High"), "Executive summary of the risks."]
    return client


@pytest.fixture
def notifier():
    notifier = Mock()
    notifier.send_alert.return_value = True
    return notifier


def build_pipeline(store, generation_client, embedding_client=None, notifier=None, **kwargs):
    return ContractAnalysisPipeline(
        store=store,
        embedding_client=embedding_client or FakeEmbeddingClient(),
        analysis_service=AnalysisService(generation_client),
        notifier=notifier,
        **kwargs,
    )


def terminal_statuses(store):
    return {entry.id: entry.status for entry in store.list_recent(100)}


class TestHealthyRun:
    """End-to-end runs with every collaborator available."""

    def test_completes_and_persists(self, store, generation_client, notifier):
        seed_sample_contracts(store, FakeEmbeddingClient())
        pipeline = build_pipeline(store, generation_client, notifier=notifier)

        result = pipeline.process_document("Big Contract", "X" * 2000)

        assert result.success
        assert result.analysis.risk_level is RiskLevel.HIGH
        assert result.report == "Executive summary of the risks."
        assert 0 <= result.similar_clauses <= 5
        assert store.get_document(result.document_id).status is DocumentStatus.COMPLETED

        history = store.list_recent(10)
        assert history[0].id == result.document_id
        assert history[0].analysis["riskLevel"] == "High"
        assert history[0].report == "Executive summary of the risks."

    def test_workflow_trace_and_timings(self, store, generation_client, notifier):
        pipeline = build_pipeline(store, generation_client, notifier=notifier)

        result = pipeline.process_document("NDA", NDA_TEXT, {"source": "api"})

        assert list(result.workflow) == [f"step{i}" for i in range(1, 8)]
        assert result.workflow["step3"] == "AI analysis completed"
        assert result.workflow["step6"] == "Notifications sent"
        assert set(result.stage_timings) == {
            "ingest", "retrieve", "analyze", "report", "store_results", "notify", "complete"
        }
        document = store.get_document(result.document_id)
        assert document.metadata["source"] == "api"
        assert "processedAt" in document.metadata
        notifier.send_alert.assert_called_once_with(
            "NDA", "High", "The contract carries significant liability exposure."
        )

    def test_related_documents_feed_the_analysis(self, store, generation_client):
        prior = add_document(store, "Earlier NDA", NDA_TEXT)
        pipeline = build_pipeline(store, generation_client)

        result = pipeline.process_document("New NDA", NDA_TEXT)

        assert result.similar_clauses == 1
        prompt = generation_client.generate.call_args_list[0][0][0]
        assert "Similar clauses from previous contracts" in prompt
        assert result.document_id != prior

    def test_document_is_excluded_from_its_own_related_set(self, store, generation_client):
        pipeline = build_pipeline(store, generation_client)

        result = pipeline.process_document("Only NDA", NDA_TEXT)

        assert result.similar_clauses == 0

    def test_retrieval_uses_bounded_query_and_configured_limits(self, store, generation_client):
        engine = Mock()
        engine.find_related.return_value = []
        pipeline = build_pipeline(store, generation_client, retrieval_engine=engine)

        result = pipeline.process_document("Long", "Y" * 3000)

        engine.find_related.assert_called_once_with(
            "Y" * 1000, limit=5, min_score=0.8, exclude_ids=[result.document_id]
        )

    def test_no_notifier_configured(self, store, generation_client):
        result = build_pipeline(store, generation_client).process_document("NDA", NDA_TEXT)
        assert result.workflow["step6"] == "Notifications not configured"

    def test_title_is_trimmed(self, store, generation_client):
        result = build_pipeline(store, generation_client).process_document("  NDA  ", NDA_TEXT)
        assert store.get_document(result.document_id).title == "NDA"


class TestDegradedRuns:
    """Runs where an optional collaborator fails."""

    def test_generation_unreachable_uses_fallbacks(self, store):
        generation_client = Mock()
        generation_client.generate.side_effect = GenerationError("connection refused")
        pipeline = build_pipeline(store, generation_client)

        result = pipeline.process_document("NDA", NDA_TEXT)

        assert result.success
        assert result.analysis.is_fallback
        assert result.analysis.risk_level is RiskLevel.MEDIUM
        assert result.report.startswith("RISK ASSESSMENT REPORT")
        assert result.workflow["step3"] == "AI analysis unavailable, fallback analysis used"
        assert store.get_document(result.document_id).status is DocumentStatus.COMPLETED
        assert store.list_recent(1)[0].analysis["fallback"] is True

    def test_generation_timeout_uses_fallbacks(self, store):
        generation_client = Mock()
        generation_client.generate.side_effect = GenerationTimeout("timed out", timeout=90.0)

        result = build_pipeline(store, generation_client).process_document("NDA", NDA_TEXT)

        assert result.analysis.is_fallback
        assert "fallback" in result.analysis.summary.lower()
        assert "RISK ASSESSMENT REPORT" in result.report

    def test_malformed_analysis_with_working_report(self, store):
        generation_client = Mock()
        generation_client.generate.side_effect = ["not json at all", "Narrative report."]

        result = build_pipeline(store, generation_client).process_document("NDA", NDA_TEXT)

        assert result.analysis.is_fallback
        assert result.report == "Narrative report."

    def test_retrieval_failure_is_not_fatal(self, store, generation_client):
        engine = Mock()
        engine.find_related.side_effect = RetrievalDegraded("All retrieval tiers failed")
        pipeline = build_pipeline(store, generation_client, retrieval_engine=engine)

        result = pipeline.process_document("NDA", NDA_TEXT)

        assert result.success
        assert result.similar_clauses == 0
        assert result.workflow["step2"] == "Found 0 similar clauses (retrieval unavailable)"

    def test_semantic_tier_failure_falls_back_to_keywords(self, store, generation_client):
        prior = add_document(store, "Earlier NDA", NDA_TEXT, embedding=[1.0, 0.0])
        embedding_client = FakeEmbeddingClient()
        engine = RetrievalEngine.from_store(store, embedding_client)
        pipeline = build_pipeline(
            store, generation_client, embedding_client=embedding_client, retrieval_engine=engine
        )

        result = pipeline.process_document("New NDA", NDA_TEXT)

        # The stored embedding has a different dimension, so the keyword tier answers.
        assert result.similar_clauses == 1
        assert prior != result.document_id

    def test_notification_failure_is_not_fatal(self, store, generation_client, notifier):
        notifier.send_alert.side_effect = NotificationError("Webhook delivery failed")

        result = build_pipeline(store, generation_client, notifier=notifier).process_document(
            "NDA", NDA_TEXT
        )

        assert result.success
        assert result.workflow["step6"] == "Notification failed"
        assert store.get_document(result.document_id).status is DocumentStatus.COMPLETED


class TestFailedRuns:
    """Runs that abort, and the terminal status they leave behind."""

    @pytest.mark.parametrize(
        "title,content",
        [("", NDA_TEXT), ("NDA", ""), ("   ", NDA_TEXT), (None, NDA_TEXT), ("NDA", None)],
    )
    def test_validation_happens_before_side_effects(self, store, generation_client, title, content):
        embedding_client = FakeEmbeddingClient()
        pipeline = build_pipeline(store, generation_client, embedding_client=embedding_client)

        with pytest.raises(ValidationError):
            pipeline.process_document(title, content)

        assert embedding_client.calls == []
        assert store.list_recent(10) == []

    def test_metadata_must_be_an_object(self, store, generation_client):
        with pytest.raises(ValidationError):
            build_pipeline(store, generation_client).process_document("NDA", NDA_TEXT, ["x"])

    def test_embedding_failure_creates_no_document(self, store, generation_client):
        pipeline = build_pipeline(
            store, generation_client, embedding_client=FakeEmbeddingClient(fail=True)
        )

        with pytest.raises(EmbeddingUnavailable):
            pipeline.process_document("NDA", NDA_TEXT)

        assert store.list_recent(10) == []
        generation_client.generate.assert_not_called()

    def test_final_status_write_failure(self, db_manager, generation_client):
        store = FailingStatusStore(db_manager, {DocumentStatus.COMPLETED})
        pipeline = build_pipeline(store, generation_client)

        with pytest.raises(PersistenceError):
            pipeline.process_document("NDA", NDA_TEXT)

        statuses = terminal_statuses(store)
        assert list(statuses.values()) == ["failed"]

    def test_persistence_unavailable_never_reports_completed(self, db_manager, generation_client):
        store = FailingStatusStore(
            db_manager, {DocumentStatus.COMPLETED, DocumentStatus.FAILED}
        )
        pipeline = build_pipeline(store, generation_client)

        with pytest.raises(PersistenceError) as exc_info:
            pipeline.process_document("NDA", NDA_TEXT)

        assert exc_info.value.message == "Connection lost"
        assert "completed" not in terminal_statuses(store).values()

    def test_analysis_write_failure_marks_failed(self, db_manager, generation_client):
        store = FailingAnalysisStore(db_manager=db_manager)

        with pytest.raises(PersistenceError):
            build_pipeline(store, generation_client).process_document("NDA", NDA_TEXT)

        assert list(terminal_statuses(store).values()) == ["failed"]

    def test_failed_runs_are_counted(self, store, generation_client):
        pipeline = build_pipeline(
            store, generation_client, embedding_client=FakeEmbeddingClient(fail=True)
        )

        with pytest.raises(EmbeddingUnavailable):
            pipeline.process_document("NDA", NDA_TEXT)

        stats = pipeline.get_stats()
        assert stats.total_executions == 1
        assert stats.failed_executions == 1
        assert pipeline.get_performance_stats()["ingest"]["success_rate"] == 0.0


class TestHealthCheck:
    """Tests for dependency health reporting."""

    def test_all_dependencies_reachable(self, store, generation_client):
        pipeline = build_pipeline(store, generation_client)

        assert pipeline.health_check() == {"database": True, "ollama": True}

    def test_unreachable_dependencies_are_reported(self, tmp_path, generation_client):
        missing = tmp_path / "no-such-dir" / "contracts.db"
        pipeline = build_pipeline(
            DocumentStore(database_url=f"sqlite:///{missing}"),
            generation_client,
            embedding_client=FakeEmbeddingClient(fail=True),
        )

        assert pipeline.health_check() == {"database": False, "ollama": False}


class TestHistory:
    """Tests for analysis history listing."""

    @pytest.mark.parametrize(
        "limit,expected",
        [(None, 10), (-5, 1), (0, 1), (1000, 100), ("abc", 10), ("25", 25), (3, 3)],
    )
    def test_limit_is_clamped(self, limit, expected):
        store = Mock()
        store.list_recent.return_value = []
        pipeline = ContractAnalysisPipeline(
            store=store,
            embedding_client=FakeEmbeddingClient(),
            analysis_service=Mock(),
            retrieval_engine=Mock(),
        )

        pipeline.list_history(limit)

        store.list_recent.assert_called_once_with(expected)

    def test_configured_default_limit(self):
        store = Mock()
        store.list_recent.return_value = []
        config = AgentConfig(history_default_limit=20)
        pipeline = ContractAnalysisPipeline(
            store=store,
            embedding_client=FakeEmbeddingClient(),
            analysis_service=Mock(),
            retrieval_engine=Mock(),
            config=config,
        )

        pipeline.list_history("not a number")

        store.list_recent.assert_called_once_with(20)

    def test_history_after_runs(self, store):
        generation_client = Mock()
        generation_client.generate.side_effect = [
            analysis_json("Low"), "First report.", analysis_json("High"), "Second report.",
        ]
        pipeline = build_pipeline(store, generation_client)

        first = pipeline.process_document("First", NDA_TEXT)
        second = pipeline.process_document("Second", "Lease of office space for two years.")

        entries = pipeline.list_history(5)
        assert [e.id for e in entries] == [second.document_id, first.document_id]
        assert [e.status for e in entries] == ["completed", "completed"]


class TestSampleData:
    """Tests for sample contract seeding."""

    def test_seeding_is_idempotent(self, store):
        client = FakeEmbeddingClient()

        assert seed_sample_contracts(store, client) == len(SAMPLE_CONTRACTS)
        assert seed_sample_contracts(store, client) == 0

        entries = store.list_recent(10)
        assert {e.title for e in entries} == {s["title"] for s in SAMPLE_CONTRACTS}
        assert {e.status for e in entries} == {"completed"}

    def test_embedding_failure_skips_samples(self, store):
        assert seed_sample_contracts(store, FakeEmbeddingClient(fail=True)) == 0
        assert store.list_recent(10) == []
