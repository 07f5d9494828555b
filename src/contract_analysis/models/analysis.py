"""Analysis and pipeline result models for the Contract Analysis Agent."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .enums import RiskLevel


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None and str(item).strip()]
    raise ValueError(f"Expected a list of strings, got {type(value).__name__}")


@dataclass
class Analysis:
    """
    Structured risk analysis of a single contract.

    Serialized with the camelCase keys the language model is asked to
    produce, so stored records and model output share one shape.
    """
    risk_level: RiskLevel
    risks: List[str] = field(default_factory=list)
    compliance: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    summary: str = ""
    is_fallback: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Analysis":
        """
        Build an Analysis from model output.

        Raises:
            ValueError: If the payload does not match the analysis shape.
        """
        if not isinstance(data, dict):
            raise ValueError("Analysis payload must be a JSON object")
        if "riskLevel" not in data:
            raise ValueError("Analysis payload is missing 'riskLevel'")

        summary = data.get("summary") or ""
        if not isinstance(summary, str):
            raise ValueError("'summary' must be a string")

        return cls(
            risk_level=RiskLevel.parse(data["riskLevel"]),
            risks=_string_list(data.get("risks")),
            compliance=_string_list(data.get("compliance")),
            recommendations=_string_list(data.get("recommendations")),
            summary=summary.strip(),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "riskLevel": self.risk_level.value,
            "risks": list(self.risks),
            "compliance": list(self.compliance),
            "recommendations": list(self.recommendations),
            "summary": self.summary,
        }
        if self.is_fallback:
            data["fallback"] = True
        return data


@dataclass
class ProcessingResult:
    """Result envelope of one pipeline run."""
    success: bool
    document_id: int
    analysis: Analysis
    report: str
    similar_clauses: int = 0
    workflow: Dict[str, str] = field(default_factory=dict)
    processing_time: float = 0.0
    stage_timings: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "documentId": self.document_id,
            "analysis": self.analysis.to_dict(),
            "report": self.report,
            "similarClauses": self.similar_clauses,
            "workflow": dict(self.workflow),
            "processingTime": round(self.processing_time, 3),
            "stageTimings": {
                name: round(duration, 3) for name, duration in self.stage_timings.items()
            },
        }


@dataclass
class HistoryEntry:
    """One row of analysis history: a document joined with its analysis."""
    id: int
    title: str
    created_at: Optional[datetime]
    status: Optional[str]
    analysis: Optional[Dict[str, Any]] = None
    report: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "status": self.status,
            "analysis": self.analysis,
            "report": self.report,
        }


@dataclass
class PipelineStats:
    """Statistics about pipeline execution."""
    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    average_processing_time: float = 0.0
    total_processing_time: float = 0.0
