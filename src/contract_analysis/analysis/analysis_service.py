"""Generative contract analysis and risk report generation.

Both stages degrade to deterministic fallback content when the generative
service times out, errors, or returns output that does not parse, so a
pipeline run always has an Analysis and a Report to persist.
"""

import logging
from typing import Optional, Sequence

from jinja2 import Environment, StrictUndefined

from ..config.models import OllamaSettings
from ..exceptions import GenerationError, GenerationTimeout
from ..interfaces.llm import IGenerationClient
from ..llm.json_extraction import extract_json_object
from ..llm.prompts import build_analysis_prompt, build_report_prompt
from ..models.analysis import Analysis
from ..models.document import SimilarClause
from ..models.enums import RiskLevel


logger = logging.getLogger(__name__)


FALLBACK_REPORT_TEMPLATE = """\
RISK ASSESSMENT REPORT

Contract: {{ title }}
Risk Level: {{ analysis.risk_level.value }}

EXECUTIVE SUMMARY:
{{ analysis.summary }}

IDENTIFIED RISKS:
{% for risk in analysis.risks %}
• {{ risk }}
{% else %}
• No specific risks identified
{% endfor %}

COMPLIANCE ISSUES:
{% for issue in analysis.compliance %}
• {{ issue }}
{% else %}
• No compliance issues found
{% endfor %}

RECOMMENDATIONS:
{% for rec in analysis.recommendations %}
• {{ rec }}
{% else %}
• No specific recommendations
{% endfor %}

Note: This report was generated with fallback formatting due to AI service \
limitations. Manual review recommended for critical contracts.
"""


def fallback_analysis(reason: str) -> Analysis:
    """Deterministic analysis used when the generative service is unusable."""
    return Analysis(
        risk_level=RiskLevel.MEDIUM,
        risks=[f"Automated analysis unavailable - {reason}"],
        compliance=["Manual review required due to system limitations"],
        recommendations=["Review contract manually", "Check Ollama service status"],
        summary=(
            "Analysis completed with fallback due to LLM service unavailability. "
            "Manual review recommended."
        ),
        is_fallback=True,
    )


class AnalysisService:
    """
    Contract analysis backed by a generative model.

    Never raises for generation problems; timeouts, service errors and
    malformed output all yield fallback content.
    """

    def __init__(
        self,
        generation_client: IGenerationClient,
        settings: Optional[OllamaSettings] = None,
    ):
        self._client = generation_client
        self.settings = settings or OllamaSettings()
        self._env = Environment(
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=False,
            undefined=StrictUndefined,
        )
        self._fallback_template = self._env.from_string(FALLBACK_REPORT_TEMPLATE)

    def analyze_contract(
        self,
        contract_content: str,
        similar_clauses: Sequence[SimilarClause] = (),
    ) -> Analysis:
        """
        Produce a structured risk analysis of a contract.

        Args:
            contract_content: Full contract text.
            similar_clauses: Related documents to include as context.

        Returns:
            The parsed Analysis, or a fallback Analysis.
        """
        prompt = build_analysis_prompt(contract_content, similar_clauses)
        options = {
            "temperature": self.settings.analysis_temperature,
            "num_predict": self.settings.analysis_max_tokens,
        }

        logger.info("Calling language model for contract analysis")
        try:
            raw = self._client.generate(
                prompt, options=options, timeout=self.settings.analysis_timeout
            )
        except GenerationTimeout as e:
            logger.warning(f"Contract analysis timed out: {e}")
            return fallback_analysis("language model request timed out")
        except GenerationError as e:
            logger.warning(f"Contract analysis failed: {e}")
            return fallback_analysis("language model service error")

        try:
            analysis = Analysis.from_dict(extract_json_object(raw))
        except ValueError as e:
            logger.warning(f"Contract analysis returned malformed output: {e}")
            return fallback_analysis("language model returned malformed output")

        logger.info(f"Contract analysis completed (risk level {analysis.risk_level.value})")
        return analysis

    def generate_risk_report(self, analysis: Analysis, contract_title: str) -> str:
        """
        Produce a narrative risk report from an analysis.

        Returns:
            Model-written report text, or a deterministically formatted one.
        """
        prompt = build_report_prompt(analysis, contract_title)
        options = {
            "temperature": self.settings.report_temperature,
            "num_predict": self.settings.report_max_tokens,
        }

        logger.info("Generating risk assessment report")
        try:
            report = self._client.generate(
                prompt, options=options, timeout=self.settings.report_timeout
            )
        except GenerationError as e:
            logger.warning(f"Report generation failed, using fallback format: {e}")
            return self.render_fallback_report(analysis, contract_title)

        logger.info("Risk report generated successfully")
        return report.strip()

    def render_fallback_report(self, analysis: Analysis, contract_title: str) -> str:
        """Format a plain-text report directly from analysis fields."""
        return self._fallback_template.render(analysis=analysis, title=contract_title)
