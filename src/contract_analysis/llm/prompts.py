"""Prompt builders for contract analysis and report generation."""

from typing import Sequence

from ..models.analysis import Analysis
from ..models.document import SimilarClause


ANALYSIS_RESPONSE_SHAPE = """{
  "riskLevel": "High|Medium|Low",
  "risks": ["list of identified risks"],
  "compliance": ["compliance issues found"],
  "recommendations": ["recommendations for improvement"],
  "summary": "brief executive summary"
}"""

SIMILAR_CLAUSE_PREVIEW_CHARS = 500


def build_analysis_prompt(
    contract_content: str, similar_clauses: Sequence[SimilarClause] = ()
) -> str:
    """Build the prompt asking for a structured risk analysis."""
    sections = [
        "You are a legal contract analysis expert. Analyze the provided contract "
        "and identify potential risks, compliance issues, and recommendations.",
        f"Contract to analyze:\n{contract_content}",
    ]
    if similar_clauses:
        lines = [
            f"{i}. {clause.content[:SIMILAR_CLAUSE_PREVIEW_CHARS]}..."
            for i, clause in enumerate(similar_clauses, start=1)
        ]
        sections.append(
            "Similar clauses from previous contracts:\n" + "\n".join(lines)
        )
    sections.append(
        "Please provide a comprehensive analysis in the following JSON format:\n"
        + ANALYSIS_RESPONSE_SHAPE
    )
    sections.append("Respond only with valid JSON:")
    return "\n\n".join(sections)


def _joined(items: Sequence[str], empty: str) -> str:
    return ", ".join(items) if items else empty


def build_report_prompt(analysis: Analysis, contract_title: str) -> str:
    """Build the prompt asking for a stakeholder-facing narrative report."""
    return (
        "Generate a professional risk assessment report based on the following "
        "contract analysis:\n\n"
        f"Contract: {contract_title}\n"
        f"Risk Level: {analysis.risk_level.value}\n"
        f"Risks: {_joined(analysis.risks, 'None identified')}\n"
        f"Compliance Issues: {_joined(analysis.compliance, 'None identified')}\n"
        f"Recommendations: {_joined(analysis.recommendations, 'None provided')}\n\n"
        "Create a concise executive summary suitable for stakeholders (2-3 paragraphs):"
    )
