"""Generative analysis for the Contract Analysis Agent."""

from .analysis_service import AnalysisService, fallback_analysis

__all__ = ["AnalysisService", "fallback_analysis"]
