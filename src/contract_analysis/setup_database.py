"""Database setup for the Contract Analysis Agent.

Creates the schema and seeds sample contracts so the retrieval tiers have
something to match against on a fresh install.

Usage:

    python -m contract_analysis.setup_database
"""

import logging
import sys
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from .config.config_manager import ConfigurationManager
from .config.models import AgentConfig, ConfigurationError
from .exceptions import EmbeddingUnavailable, PersistenceError
from .interfaces.llm import IEmbeddingClient
from .llm.ollama_client import OllamaClient
from .models.enums import DocumentStatus
from .storage.database import DatabaseManager
from .storage.document_store import DocumentStore


logger = logging.getLogger(__name__)


SAMPLE_CONTRACTS: List[Dict[str, Any]] = [
    {
        "title": "Software License Agreement - Template",
        "content": """SOFTWARE LICENSE AGREEMENT

This Software License Agreement ("Agreement") is entered into between Company and Licensee.

1. GRANT OF LICENSE
Company grants Licensee a non-exclusive, non-transferable license to use the software.

2. RESTRICTIONS
Licensee shall not modify, distribute, or reverse engineer the software.

3. TERMINATION
This agreement may be terminated by either party with 30 days written notice.

4. LIABILITY
Company's liability is limited to the amount paid for the software license.""",
        "metadata": {"type": "template", "category": "software"},
    },
    {
        "title": "Service Agreement - Consulting",
        "content": """CONSULTING SERVICE AGREEMENT

This Service Agreement is between Consultant and Client for professional services.

1. SCOPE OF WORK
Consultant will provide strategic consulting services as outlined in Exhibit A.

2. PAYMENT TERMS
Client agrees to pay consultant $150/hour for services rendered.

3. CONFIDENTIALITY
Both parties agree to maintain confidentiality of proprietary information.

4. INDEMNIFICATION
Each party shall indemnify the other against third-party claims arising from their actions.""",
        "metadata": {"type": "service", "category": "consulting"},
    },
]


def seed_sample_contracts(
    store: DocumentStore,
    embedding_client: IEmbeddingClient,
    samples: Optional[List[Dict[str, Any]]] = None,
) -> int:
    """
    Insert sample contracts that are not already stored.

    Samples are matched by title. A sample whose embedding cannot be
    computed is skipped.

    Returns:
        Number of contracts inserted.
    """
    inserted = 0
    for sample in SAMPLE_CONTRACTS if samples is None else samples:
        if store.find_by_title(sample["title"]) is not None:
            logger.info(f"Sample contract already present: {sample['title']}")
            continue

        try:
            embedding = embedding_client.embed(sample["content"])
        except EmbeddingUnavailable as e:
            logger.warning(f"Skipping sample data (embedding unavailable): {sample['title']}: {e}")
            continue

        store.create_document(
            sample["title"],
            sample["content"],
            embedding,
            {**sample["metadata"], "status": DocumentStatus.COMPLETED.value},
        )
        inserted += 1
        logger.info(f"Inserted sample contract: {sample['title']}")
    return inserted


def setup_database(config: Optional[AgentConfig] = None, seed: bool = True) -> int:
    """
    Create tables and optionally seed sample contracts.

    Returns:
        Number of sample contracts inserted.
    """
    config = config or AgentConfig()
    db_manager = DatabaseManager(
        database_url=config.database.url,
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
        pool_timeout=config.database.pool_timeout,
        connect_timeout=config.database.connect_timeout,
        statement_timeout=config.database.statement_timeout,
    )
    ollama_client = None
    try:
        try:
            db_manager.init_database()
        except SQLAlchemyError as e:
            raise PersistenceError(
                message=f"Schema creation failed: {e}", operation="init_database"
            ) from e
        if not seed:
            return 0
        ollama_client = OllamaClient(settings=config.ollama)
        return seed_sample_contracts(DocumentStore(db_manager=db_manager), ollama_client)
    finally:
        if ollama_client is not None:
            ollama_client.close()
        db_manager.close()


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    manager = ConfigurationManager()
    try:
        manager.load_from_env()
        inserted = setup_database(manager.configuration)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e.message}")
        if e.validation_result:
            for error in e.validation_result.errors:
                logger.error(f"  {error}")
        return 1
    except PersistenceError as e:
        logger.error(f"Database setup failed: {e}")
        return 1

    logger.info(f"Database setup completed ({inserted} sample contracts inserted)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
