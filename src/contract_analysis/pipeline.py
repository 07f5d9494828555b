"""End-to-end processing pipeline for the Contract Analysis Agent.

This module provides the orchestration logic that takes one contract from
ingestion to a persisted analysis: embed and store, retrieve related
documents, analyze, report, persist, notify, and mark the document done.

Every document created by a run reaches exactly one terminal status. When a
stage fails after the document exists, the run writes ``failed`` on a best
effort basis and then re-raises the original error.
"""

import logging
import threading
import time
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from .analysis.analysis_service import AnalysisService
from .config.models import AgentConfig
from .exceptions import RetrievalDegraded, ValidationError
from .interfaces.llm import IEmbeddingClient
from .interfaces.notification import INotifier
from .interfaces.storage import IDocumentStore
from .llm.ollama_client import OllamaClient
from .models.analysis import Analysis, HistoryEntry, PipelineStats, ProcessingResult
from .models.document import SimilarClause
from .models.enums import DocumentStatus
from .notifications.notification_service import NotificationService
from .performance import PerformanceMonitor, StageTimer
from .retrieval.retrieval_engine import RetrievalEngine, clamp_limit
from .storage.database import DatabaseManager
from .storage.document_store import DocumentStore


logger = logging.getLogger(__name__)

HISTORY_MAX_LIMIT = 100


class ContractAnalysisPipeline:
    """
    Main processing pipeline for contract analysis.

    Collaborators are constructed once and injected; the pipeline holds no
    per-run state, so concurrent runs for different documents are safe.
    """

    def __init__(
        self,
        store: IDocumentStore,
        embedding_client: IEmbeddingClient,
        analysis_service: AnalysisService,
        retrieval_engine: Optional[RetrievalEngine] = None,
        notifier: Optional[INotifier] = None,
        config: Optional[AgentConfig] = None,
        performance_monitor: Optional[PerformanceMonitor] = None,
    ):
        """
        Initialize the processing pipeline.

        Args:
            store: Document store used for every write.
            embedding_client: Embedding service for ingestion.
            analysis_service: Generative analysis and report service.
            retrieval_engine: Related-document finder (built from store if not provided).
            notifier: Optional notifier; no notifications are sent without one.
            config: Agent configuration.
            performance_monitor: Shared stage-timing monitor.
        """
        self.config = config or AgentConfig()
        self._store = store
        self._embedding_client = embedding_client
        self._analysis_service = analysis_service
        self._retrieval_engine = retrieval_engine or RetrievalEngine.from_store(
            store, embedding_client, self.config.retrieval
        )
        self._notifier = notifier
        self.performance_monitor = performance_monitor or PerformanceMonitor()
        self.stats = PipelineStats()
        self._stats_lock = threading.Lock()
        self._owned_resources: List[Any] = []

        logger.info("Processing pipeline initialized")

    @classmethod
    def from_config(cls, config: Optional[AgentConfig] = None) -> "ContractAnalysisPipeline":
        """Build a pipeline with production collaborators from configuration."""
        config = config or AgentConfig()
        db_manager = DatabaseManager(
            database_url=config.database.url,
            pool_size=config.database.pool_size,
            max_overflow=config.database.max_overflow,
            pool_timeout=config.database.pool_timeout,
            connect_timeout=config.database.connect_timeout,
            statement_timeout=config.database.statement_timeout,
            echo=config.database.echo,
        )
        store = DocumentStore(db_manager=db_manager)
        ollama_client = OllamaClient(settings=config.ollama)
        notifier = NotificationService(settings=config.notification)

        pipeline = cls(
            store=store,
            embedding_client=ollama_client,
            analysis_service=AnalysisService(ollama_client, settings=config.ollama),
            notifier=notifier,
            config=config,
        )
        pipeline._owned_resources = [notifier, ollama_client, db_manager]
        return pipeline

    # =========================================================================
    # Public operations
    # =========================================================================

    def process_document(
        self,
        title: str,
        content: str,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> ProcessingResult:
        """
        Run the complete analysis workflow for one contract.

        Args:
            title: Contract title.
            content: Full contract text.
            metadata: Optional caller metadata stored with the document.

        Returns:
            ProcessingResult with the analysis, report and workflow trace.

        Raises:
            ValidationError: If title or content is empty.
            EmbeddingUnavailable: If the contract cannot be embedded.
            PersistenceError: If a store write fails.
        """
        title, content, metadata = self._validate(title, content, metadata)

        start_time = time.time()
        timer = StageTimer(self.performance_monitor)
        workflow: Dict[str, str] = {}
        document_id: Optional[int] = None

        logger.info(f"Starting contract analysis for: {title}")

        try:
            # Step 1: Embed and store the document as processing
            logger.info("Step 1: Ingesting and indexing document")
            with timer.stage("ingest"):
                embedding = self._embedding_client.embed(content)
                document_id = self._store.create_document(
                    title,
                    content,
                    embedding,
                    {
                        **metadata,
                        "processedAt": datetime.utcnow().isoformat(),
                        "status": DocumentStatus.PROCESSING.value,
                    },
                )
            workflow["step1"] = "Document ingested and indexed"

            # Step 2: Find related prior documents
            logger.info("Step 2: Searching for similar contract clauses")
            with timer.stage("retrieve"):
                similar_clauses, degraded = self._find_related(content, document_id)
            workflow["step2"] = f"Found {len(similar_clauses)} similar clauses"
            if degraded:
                workflow["step2"] += " (retrieval unavailable)"

            # Step 3: Generative analysis
            logger.info("Step 3: Performing AI-powered contract analysis")
            with timer.stage("analyze"):
                analysis = self._analysis_service.analyze_contract(content, similar_clauses)
            workflow["step3"] = (
                "AI analysis unavailable, fallback analysis used"
                if analysis.is_fallback else "AI analysis completed"
            )

            # Step 4: Narrative report
            logger.info("Step 4: Generating risk assessment report")
            with timer.stage("report"):
                report = self._analysis_service.generate_risk_report(analysis, title)
            workflow["step4"] = "Risk report generated"

            # Step 5: Persist analysis and report
            logger.info("Step 5: Storing analysis results")
            with timer.stage("store_results"):
                self._store.save_analysis(document_id, analysis, report)
            workflow["step5"] = "Results stored in database"

            # Step 6: Best-effort notification
            logger.info("Step 6: Sending notifications")
            with timer.stage("notify"):
                workflow["step6"] = self._notify(title, analysis)

            # Step 7: Terminal status
            with timer.stage("complete"):
                self._store.update_status(document_id, DocumentStatus.COMPLETED)
            workflow["step7"] = "Workflow completed"

        except Exception:
            logger.exception(f"Contract processing workflow failed for: {title}")
            if document_id is not None:
                self._mark_failed(document_id)
            self._update_stats(success=False, processing_time=time.time() - start_time)
            raise

        processing_time = time.time() - start_time
        self._update_stats(success=True, processing_time=processing_time)
        logger.info(
            f"Contract analysis workflow completed in {processing_time:.2f}s "
            f"(document {document_id}, risk {analysis.risk_level.value})"
        )

        return ProcessingResult(
            success=True,
            document_id=document_id,
            analysis=analysis,
            report=report,
            similar_clauses=len(similar_clauses),
            workflow=workflow,
            processing_time=processing_time,
            stage_timings=dict(timer.timings),
        )

    def list_history(self, limit: Any = None) -> List[HistoryEntry]:
        """
        Return recent documents with their analyses, newest first.

        ``limit`` is clamped to [1, 100]; unparsable values use the
        configured default.
        """
        default = self.config.history_default_limit
        valid_limit = clamp_limit(
            default if limit is None else limit,
            default=default,
            upper=HISTORY_MAX_LIMIT,
        )
        return self._store.list_recent(valid_limit)

    # =========================================================================
    # Stage helpers
    # =========================================================================

    @staticmethod
    def _validate(
        title: Any, content: Any, metadata: Optional[Mapping[str, Any]]
    ) -> tuple[str, str, Dict[str, Any]]:
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Title and content are required", field_name="title")
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("Title and content are required", field_name="content")
        if metadata is not None and not isinstance(metadata, Mapping):
            raise ValidationError("Metadata must be an object", field_name="metadata")
        return title.strip(), content, dict(metadata or {})

    def _find_related(
        self, content: str, document_id: int
    ) -> tuple[List[SimilarClause], bool]:
        settings = self.config.retrieval
        try:
            related = self._retrieval_engine.find_related(
                content[:settings.query_prefix_chars],
                limit=settings.limit,
                min_score=settings.min_score,
                exclude_ids=[document_id],
            )
        except RetrievalDegraded as e:
            logger.warning(f"Related-document retrieval unavailable, continuing without: {e}")
            return [], True
        return related, False

    def _notify(self, title: str, analysis: Analysis) -> str:
        if self._notifier is None:
            return "Notifications not configured"
        try:
            sent = self._notifier.send_alert(
                title, analysis.risk_level.value, analysis.summary
            )
        except Exception as e:
            logger.warning(f"Notification failed: {e}")
            return "Notification failed"
        return "Notifications sent" if sent else "Notifications not configured"

    def _mark_failed(self, document_id: int) -> None:
        """Write the failed status without masking the error being handled."""
        try:
            self._store.update_status(document_id, DocumentStatus.FAILED)
        except Exception as e:
            logger.warning(f"Could not mark document {document_id} as failed: {e}")

    # =========================================================================
    # Statistics and lifecycle
    # =========================================================================

    def _update_stats(self, success: bool, processing_time: float) -> None:
        """Update pipeline statistics."""
        with self._stats_lock:
            self.stats.total_executions += 1
            if success:
                self.stats.successful_executions += 1
            else:
                self.stats.failed_executions += 1
            self.stats.total_processing_time += processing_time
            self.stats.average_processing_time = (
                self.stats.total_processing_time / self.stats.total_executions
            )

    def get_stats(self) -> PipelineStats:
        """Get pipeline execution statistics."""
        return self.stats

    def get_performance_stats(self) -> Dict[str, Dict[str, Any]]:
        """Get timing statistics for every pipeline stage."""
        return self.performance_monitor.get_all_stats()

    def health_check(self) -> Dict[str, bool]:
        """Check the document store and the embedding service."""
        return {
            "database": self._store.health_check(),
            "ollama": self._embedding_client.health_check(),
        }

    def close(self) -> None:
        """Release resources created by ``from_config``."""
        for resource in self._owned_resources:
            resource.close()
        self._owned_resources = []
        logger.info("Processing pipeline closed")
