"""FastAPI application for the Contract Analysis Agent.

This module exposes the ContractAnalysisPipeline over HTTP. The pipeline is
built once at startup and shared by all requests.

Usage (from project root):

    uvicorn contract_analysis.api.app:app --reload

Then POST a JSON body ``{"title": ..., "content": ...}`` to /analyze, or a
multipart/form-data request with a ``contract`` file field to /upload.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config.config_manager import ConfigurationManager
from ..exceptions import ValidationError
from ..parsers.text_extractor import TextExtractor
from ..pipeline import ContractAnalysisPipeline


logger = logging.getLogger(__name__)

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
START_TIME = time.time()


class AnalyzeRequest(BaseModel):
    """Body of POST /analyze. Presence of title/content is checked by the pipeline."""
    title: Optional[str] = None
    content: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


def get_pipeline(request: Request) -> ContractAnalysisPipeline:
    return request.app.state.pipeline


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": message})


def create_app(pipeline: Optional[ContractAnalysisPipeline] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        pipeline: Pre-built pipeline. When omitted, one is built from the
                  environment at startup and closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, "pipeline", None) is None:
            manager = ConfigurationManager()
            manager.load_from_env()
            owned = ContractAnalysisPipeline.from_config(manager.configuration)
            app.state.pipeline = owned
        logger.info("Smart Contract Analysis Agent ready")
        try:
            yield
        finally:
            if owned is not None:
                owned.close()
                app.state.pipeline = None

    app = FastAPI(
        title="Smart Contract Analysis Agent",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline
    extractor = TextExtractor()

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _error(400, exc.message, str(exc))

    @app.get("/")
    def index() -> Dict[str, Any]:
        return {
            "message": "Smart Contract Analysis Agent",
            "version": "1.0.0",
            "endpoints": {
                "POST /analyze": "Analyze a contract (JSON)",
                "POST /upload": "Upload and analyze a contract file",
                "GET /history": "Get analysis history",
                "GET /health": "Health check",
            },
        }

    @app.post("/analyze")
    def analyze(
        body: AnalyzeRequest,
        pipeline: ContractAnalysisPipeline = Depends(get_pipeline),
    ) -> JSONResponse:
        logger.info(f"Received contract analysis request: {body.title}")
        try:
            result = pipeline.process_document(body.title, body.content, body.metadata)
        except ValidationError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Error processing contract: {exc}")
            return _error(500, "Failed to process contract", str(exc))
        return JSONResponse(status_code=200, content=result.to_dict())

    @app.post("/upload")
    def upload(
        contract: UploadFile = File(..., description="Contract file (.pdf/.docx/.txt)"),
        pipeline: ContractAnalysisPipeline = Depends(get_pipeline),
    ) -> JSONResponse:
        data = contract.file.read(MAX_UPLOAD_BYTES + 1)
        if len(data) > MAX_UPLOAD_BYTES:
            return _error(413, "File too large", "Uploads are limited to 10 MB")

        filename = contract.filename or "upload"
        content = extractor.extract(data, filename=filename, mime_type=contract.content_type)
        logger.info(f"Processing uploaded file: {filename}")

        try:
            result = pipeline.process_document(
                filename,
                content,
                {
                    "originalFilename": filename,
                    "mimeType": contract.content_type,
                    "fileSize": len(data),
                    "uploadedAt": datetime.now(timezone.utc).isoformat(),
                },
            )
        except ValidationError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Error processing uploaded file: {exc}")
            return _error(500, "Failed to process uploaded file", str(exc))
        return JSONResponse(status_code=200, content=result.to_dict())

    @app.get("/history")
    def history(
        limit: Optional[str] = None,
        pipeline: ContractAnalysisPipeline = Depends(get_pipeline),
    ) -> JSONResponse:
        try:
            entries = pipeline.list_history(limit)
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Error fetching history: {exc}")
            return _error(500, "Failed to fetch analysis history", str(exc))
        return JSONResponse(
            status_code=200,
            content={
                "success": True,
                "count": len(entries),
                "data": [entry.to_dict() for entry in entries],
            },
        )

    @app.get("/health")
    def health(pipeline: ContractAnalysisPipeline = Depends(get_pipeline)) -> JSONResponse:
        checks = pipeline.health_check()
        healthy = all(checks.values())
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={
                "status": "healthy" if healthy else "degraded",
                "checks": checks,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "uptime": time.time() - START_TIME,
            },
        )

    return app


app = create_app()
