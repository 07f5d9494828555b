"""SQLAlchemy models for the document store."""

from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, relationship
from sqlalchemy.types import TypeDecorator


class JSONType(TypeDecorator):
    """Platform-independent JSON type.

    Uses JSONB for PostgreSQL and JSON for other databases (like SQLite).
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        else:
            return dialect.type_descriptor(JSON())


# SQLite only autoincrements INTEGER PRIMARY KEY columns.
IdType = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class DocumentModel(Base):
    """Documents table model."""
    __tablename__ = "documents"

    id = Column(IdType, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False)
    content = Column(Text, nullable=False)
    metadata_ = Column("metadata", JSONType)
    embedding = Column(JSONType, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    analyses = relationship(
        "ContractAnalysisModel",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_title", "title"),
        Index("idx_created_at", "created_at"),
    )


class ContractAnalysisModel(Base):
    """Contract analyses table model."""
    __tablename__ = "contract_analyses"

    id = Column(IdType, primary_key=True, autoincrement=True)
    document_id = Column(
        IdType, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False
    )
    analysis_data = Column(JSONType, nullable=False)
    risk_report = Column(Text)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    document = relationship("DocumentModel", back_populates="analyses")

    __table_args__ = (
        Index("idx_contract_analyses_document_id", "document_id"),
    )
