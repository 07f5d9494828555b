"""Persistence layer for the Contract Analysis Agent."""

from .database import DatabaseManager, get_database_url
from .document_store import DocumentStore
from .models import Base, ContractAnalysisModel, DocumentModel

__all__ = [
    "DatabaseManager",
    "get_database_url",
    "DocumentStore",
    "Base",
    "ContractAnalysisModel",
    "DocumentModel",
]
