"""SQLAlchemy-backed document store.

The store is the only writer of the ``documents`` and ``contract_analyses``
tables. Every public method runs in its own short-lived session so that a
pooled connection is released as soon as the operation finishes.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Generator, Iterable, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import case, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import PersistenceError
from ..interfaces.storage import IDocumentStore
from ..models.analysis import Analysis, HistoryEntry
from ..models.document import Document, SimilarClause
from ..models.enums import DocumentStatus, RetrievalTier
from .database import DatabaseManager
from .models import ContractAnalysisModel, DocumentModel


logger = logging.getLogger(__name__)

TITLE_PRIMARY_SCORE = 0.9
CONTENT_PRIMARY_SCORE = 0.8
CONTENT_SECONDARY_SCORE = 0.7
BASELINE_SCORE = 0.5
EMBEDDING_BATCH_SIZE = 500


def like_pattern(fragment: str) -> str:
    """Wrap a literal fragment in LIKE wildcards, escaping special characters."""
    escaped = (
        fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    )
    return f"%{escaped}%"


class DocumentStore(IDocumentStore):
    """
    Document store implementation with a SQL backend.

    Wraps every SQLAlchemy failure in PersistenceError so callers only
    deal with the agent's own error taxonomy.
    """

    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        database_url: Optional[str] = None,
    ):
        """
        Initialize the document store.

        Args:
            db_manager: Optional DatabaseManager instance. If not provided,
                       a new one will be created.
            database_url: Database URL for creating a new DatabaseManager.
        """
        if db_manager is not None:
            self._db_manager = db_manager
            self._owns_db_manager = False
        else:
            self._db_manager = DatabaseManager(database_url=database_url)
            self._owns_db_manager = True

    @contextmanager
    def _session(self, operation: str) -> Generator[Session, None, None]:
        try:
            with self._db_manager.get_session() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Database operation '{operation}' failed: {e}")
            raise PersistenceError(
                message=f"Database operation '{operation}' failed",
                operation=operation,
                details={"original_error": str(e)},
            ) from e

    # =========================================================================
    # Writes
    # =========================================================================

    def create_document(
        self,
        title: str,
        content: str,
        embedding: Sequence[float],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> int:
        model = DocumentModel(
            title=title,
            content=content,
            metadata_=dict(metadata or {}),
            embedding=[float(x) for x in embedding],
            created_at=datetime.utcnow(),
        )
        with self._session("create_document") as session:
            session.add(model)
            session.flush()
            document_id = model.id

        logger.info(f"Stored document {document_id} ({len(content)} chars)")
        return document_id

    def update_status(self, document_id: int, status: DocumentStatus) -> None:
        with self._session("update_status") as session:
            model = session.get(DocumentModel, document_id)
            if model is None:
                raise PersistenceError(
                    message=f"Document {document_id} not found",
                    operation="update_status",
                )
            metadata = dict(model.metadata_ or {})
            metadata["status"] = status.value
            metadata["statusUpdatedAt"] = datetime.utcnow().isoformat()
            # Reassign so the JSON column is flagged as modified.
            model.metadata_ = metadata

        logger.info(f"Document {document_id} status set to '{status.value}'")

    def save_analysis(self, document_id: int, analysis: Analysis, report: str) -> int:
        model = ContractAnalysisModel(
            document_id=document_id,
            analysis_data=analysis.to_dict(),
            risk_report=report,
            created_at=datetime.utcnow(),
        )
        with self._session("save_analysis") as session:
            session.add(model)
            session.flush()
            analysis_id = model.id
        return analysis_id

    # =========================================================================
    # Reads
    # =========================================================================

    def get_document(self, document_id: int) -> Optional[Document]:
        with self._session("get_document") as session:
            model = session.get(DocumentModel, document_id)
            if model is None:
                return None
            return self._to_document(model)

    def find_by_title(self, title: str) -> Optional[Document]:
        """Return the most recent document with exactly this title."""
        with self._session("find_by_title") as session:
            model = session.execute(
                select(DocumentModel)
                .where(DocumentModel.title == title)
                .order_by(DocumentModel.created_at.desc())
                .limit(1)
            ).scalar_one_or_none()
            return self._to_document(model) if model is not None else None

    def list_recent(self, limit: int) -> List[HistoryEntry]:
        stmt = (
            select(
                DocumentModel.id,
                DocumentModel.title,
                DocumentModel.created_at,
                DocumentModel.metadata_,
                ContractAnalysisModel.analysis_data,
                ContractAnalysisModel.risk_report,
            )
            .outerjoin(
                ContractAnalysisModel,
                ContractAnalysisModel.document_id == DocumentModel.id,
            )
            .order_by(
                DocumentModel.created_at.desc(),
                DocumentModel.id.desc(),
                ContractAnalysisModel.id.desc(),
            )
            .limit(limit)
        )
        with self._session("list_recent") as session:
            rows = session.execute(stmt).all()

        return [
            HistoryEntry(
                id=row.id,
                title=row.title,
                created_at=row.created_at,
                status=(row.metadata_ or {}).get("status"),
                analysis=row.analysis_data,
                report=row.risk_report,
            )
            for row in rows
        ]

    def iter_embeddings(
        self, exclude_ids: Iterable[int] = ()
    ) -> Iterator[Tuple[int, List[float]]]:
        """
        Stream ``(id, embedding)`` pairs in batches.

        Titles and contents are not loaded; use ``get_documents`` for the
        rows that survive ranking.
        """
        stmt = self._exclude(
            select(DocumentModel.id, DocumentModel.embedding), exclude_ids
        ).execution_options(yield_per=EMBEDDING_BATCH_SIZE)
        with self._session("iter_embeddings") as session:
            for row in session.execute(stmt):
                if row.embedding:
                    yield row.id, [float(x) for x in row.embedding]

    def get_documents(self, document_ids: Sequence[int]) -> List[Document]:
        """Fetch documents in the order of ``document_ids``; unknown ids are skipped."""
        ids = list(document_ids)
        if not ids:
            return []
        with self._session("get_documents") as session:
            models = session.execute(
                select(DocumentModel).where(DocumentModel.id.in_(ids))
            ).scalars().all()
            by_id = {m.id: self._to_document(m) for m in models}
        return [by_id[i] for i in ids if i in by_id]

    def search_keywords(
        self,
        primary: str,
        secondary: Optional[str],
        limit: int,
        exclude_ids: Iterable[int] = (),
    ) -> List[SimilarClause]:
        primary_pattern = like_pattern(primary)
        title_hit = DocumentModel.title.ilike(primary_pattern, escape="\\")
        content_hit = DocumentModel.content.ilike(primary_pattern, escape="\\")

        whens = [(title_hit, TITLE_PRIMARY_SCORE), (content_hit, CONTENT_PRIMARY_SCORE)]
        conditions = [title_hit, content_hit]
        if secondary:
            secondary_hit = DocumentModel.content.ilike(
                like_pattern(secondary), escape="\\"
            )
            whens.append((secondary_hit, CONTENT_SECONDARY_SCORE))
            conditions.append(secondary_hit)

        score = case(*whens, else_=BASELINE_SCORE).label("similarity_score")
        stmt = select(
            DocumentModel.id,
            DocumentModel.title,
            DocumentModel.content,
            DocumentModel.created_at,
            score,
        ).where(or_(*conditions))
        stmt = self._exclude(stmt, exclude_ids)
        stmt = stmt.order_by(
            score.desc(), DocumentModel.created_at.desc(), DocumentModel.id.desc()
        ).limit(limit)

        with self._session("search_keywords") as session:
            rows = session.execute(stmt).all()

        return [
            SimilarClause(
                id=row.id,
                title=row.title,
                content=row.content,
                similarity_score=float(row.similarity_score),
                created_at=row.created_at,
                tier=RetrievalTier.KEYWORD,
            )
            for row in rows
        ]

    def search_substring(
        self, pattern: str, limit: int, exclude_ids: Iterable[int] = ()
    ) -> List[SimilarClause]:
        like = like_pattern(pattern)
        stmt = select(
            DocumentModel.id,
            DocumentModel.title,
            DocumentModel.content,
            DocumentModel.created_at,
        ).where(
            or_(
                DocumentModel.title.ilike(like, escape="\\"),
                DocumentModel.content.ilike(like, escape="\\"),
            )
        )
        stmt = self._exclude(stmt, exclude_ids)
        stmt = stmt.order_by(
            DocumentModel.created_at.desc(), DocumentModel.id.desc()
        ).limit(limit)

        with self._session("search_substring") as session:
            rows = session.execute(stmt).all()

        return [
            SimilarClause(
                id=row.id,
                title=row.title,
                content=row.content,
                similarity_score=BASELINE_SCORE,
                created_at=row.created_at,
                tier=RetrievalTier.SUBSTRING,
            )
            for row in rows
        ]

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _exclude(stmt, exclude_ids: Iterable[int]):
        excluded = list(exclude_ids)
        if excluded:
            stmt = stmt.where(DocumentModel.id.not_in(excluded))
        return stmt

    @staticmethod
    def _to_document(model: DocumentModel) -> Document:
        return Document(
            id=model.id,
            title=model.title,
            content=model.content,
            embedding=list(model.embedding or []),
            metadata=dict(model.metadata_ or {}),
            created_at=model.created_at,
        )

    def health_check(self) -> bool:
        return self._db_manager.health_check()

    def close(self) -> None:
        """Release the database manager if this store created it."""
        if self._owns_db_manager:
            self._db_manager.close()
