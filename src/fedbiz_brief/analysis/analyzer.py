# ABOUTME: Narrative analyzers producing "What This Means" and "Next Actions" bullets.
# ABOUTME: RuleBasedAnalyzer is deterministic; GeminiAnalyzer uses Google Gemini with rule-based fallback.

from abc import ABC, abstractmethod
from datetime import date

import structlog
from google import genai
from google.genai import types
from pydantic import BaseModel

from fedbiz_brief.analysis.prompts import (
    ANALYST_SYSTEM_PROMPT,
    NEXT_ACTIONS_PROMPT,
    WHAT_IT_MEANS_PROMPT,
)
from fedbiz_brief.config import Settings, get_settings
from fedbiz_brief.models import ContentItem, Solicitation

log = structlog.get_logger()

PROGRAM_INSIGHTS: dict[str, list[str]] = {
    "tls": [
        "TLS opportunities favor companies with rapid deployment capabilities "
        "and tactical expertise",
        "Strong past performance in emergency/tactical support increases win probability",
    ],
    "oasis+": [
        "OASIS+ task orders emphasize technical capability and demonstrated experience",
        "Pool positioning and domain expertise critical for capture success",
    ],
    "sewp": [
        "SEWP VI competition intensifying - OEM relationships and pricing crucial",
        "Technology refresh cycles driving increased spending",
    ],
}

PROGRAM_ACTIONS: dict[str, list[str]] = {
    "tls": [
        "Update tactical logistics capabilities and certifications",
        "Review emergency response procedures and rapid deployment assets",
    ],
    "oasis+": [
        "Verify pool alignment and domain positioning for new task orders",
        "Update OASIS+ profile with recent contract awards and capabilities",
    ],
    "sewp": [
        "Confirm OEM authorizations and reseller agreements are current",
        "Review pricing models for competitiveness in current market",
    ],
}


class AnalysisContext(BaseModel):
    """Everything an analyzer sees about one program's daily activity."""

    program_code: str
    program_name: str
    news_items: list[ContentItem] = []
    solicitations: list[Solicitation] = []
    closing_soon: list[Solicitation] = []


def _bullets(lines: list[str]) -> str:
    return "".join(f"- {line}\n" for line in lines)


class Analyzer(ABC):
    """Narrative strategy used by the brief aggregator."""

    @abstractmethod
    def what_it_means(self, context: AnalysisContext) -> str:
        """Bullet list interpreting the program's activity."""

    @abstractmethod
    def next_actions(self, context: AnalysisContext) -> str:
        """Bullet list of recommended next steps."""


class RuleBasedAnalyzer(Analyzer):
    """Deterministic analyzer: activity, program and fiscal-calendar rules."""

    def __init__(self, today: date | None = None) -> None:
        self.today = today

    def _month(self) -> int:
        return (self.today or date.today()).month

    def what_it_means(self, context: AnalysisContext) -> str:
        lines: list[str] = []

        if context.solicitations:
            lines.append(
                "Increased agency demand signals growing market opportunity in this sector"
            )
        if context.closing_soon:
            lines.append(
                f"{len(context.closing_soon)} opportunity(ies) closing soon require "
                "immediate bid/no-bid decisions"
            )
        if context.news_items:
            lines.append("Recent developments indicate evolving agency priorities and requirements")

        lines.extend(PROGRAM_INSIGHTS.get(context.program_code, []))

        month = self._month()
        if 6 <= month <= 9:
            lines.append("End-of-fiscal-year period increases opportunity velocity and urgency")
        elif 10 <= month <= 12:
            lines.append(
                "New fiscal year brings fresh funding and strategic planning opportunities"
            )

        if not lines:
            lines.append("Continue monitoring for emerging opportunities and market developments")
        return _bullets(lines)

    def next_actions(self, context: AnalysisContext) -> str:
        lines: list[str] = []

        if context.closing_soon:
            lines.extend(
                [
                    f"Conduct bid/no-bid analysis for {len(context.closing_soon)} "
                    "closing opportunity(ies)",
                    "Assemble response teams for qualified opportunities",
                    "Verify technical compliance and past performance requirements",
                ]
            )
        if context.solicitations:
            lines.extend(
                [
                    "Analyze new opportunities for capability fit and competitive positioning",
                    "Initiate prime contractor outreach for teaming discussions",
                    "Schedule customer engagement calls for requirement clarification",
                ]
            )

        lines.extend(PROGRAM_ACTIONS.get(context.program_code, []))
        lines.extend(
            [
                "Monitor for solicitation amendments and agency Q&A responses",
                "Update past performance narratives with recent contract successes",
            ]
        )

        month = self._month()
        if 6 <= month <= 9:
            lines.append(
                "Prioritize end-of-fiscal-year opportunities for faster procurement cycles"
            )
        elif 10 <= month <= 12:
            lines.append(
                "Engage in strategic planning discussions for new fiscal year requirements"
            )

        return _bullets(lines)


class GeminiAnalyzer(Analyzer):
    """Analyzer backed by Google Gemini.

    Any failure (missing key, API error, empty answer) falls back to the
    rule-based analyzer so a brief is always produced.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        fallback: Analyzer | None = None,
        client: genai.Client | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.fallback = fallback or RuleBasedAnalyzer()
        self._client = client

    @property
    def client(self) -> genai.Client:
        """Lazy-initialized Gemini client."""
        if self._client is None:
            if not self.settings.gemini_api_key:
                raise ValueError("GEMINI_API_KEY is required")
            self._client = genai.Client(
                api_key=self.settings.gemini_api_key.get_secret_value(),
            )
        return self._client

    def what_it_means(self, context: AnalysisContext) -> str:
        prompt = WHAT_IT_MEANS_PROMPT.format(program_name=context.program_name)
        return self._analyze(context, prompt) or self.fallback.what_it_means(context)

    def next_actions(self, context: AnalysisContext) -> str:
        prompt = NEXT_ACTIONS_PROMPT.format(program_name=context.program_name)
        return self._analyze(context, prompt) or self.fallback.next_actions(context)

    def _analyze(self, context: AnalysisContext, instruction: str) -> str | None:
        try:
            text = self._generate(self._build_context(context) + instruction)
        except Exception as e:
            log.warning("ai_analysis_failed", program=context.program_code, error=str(e))
            return None
        if not text.strip():
            log.warning("empty_ai_analysis", program=context.program_code)
            return None
        return self.normalize_bullets(text)

    def _generate(self, prompt: str) -> str:
        config = types.GenerateContentConfig(
            temperature=self.settings.ai_temperature,
            max_output_tokens=self.settings.ai_max_output_tokens,
            system_instruction=[types.Part.from_text(text=ANALYST_SYSTEM_PROMPT)],
        )
        contents = [types.Content(role="user", parts=[types.Part.from_text(text=prompt)])]

        log.debug(
            "generating_analysis",
            model=self.settings.gemini_model,
            prompt_length=len(prompt),
        )
        result = ""
        for chunk in self.client.models.generate_content_stream(
            model=self.settings.gemini_model,
            contents=contents,
            config=config,
        ):
            if chunk.text:
                result += chunk.text
        return result

    @staticmethod
    def _build_context(context: AnalysisContext) -> str:
        parts = [
            f"Program: {context.program_name} ({context.program_code})",
            f"Activity Summary: {len(context.news_items)} news items, "
            f"{len(context.solicitations)} new solicitations, "
            f"{len(context.closing_soon)} closing soon",
            "",
        ]
        if context.news_items:
            parts.append("Recent News:")
            parts.extend(f"- {item.title}" for item in context.news_items[:3])
            parts.append("")
        if context.solicitations:
            parts.append("New Opportunities:")
            parts.extend(f"- {opp.title} ({opp.agency})" for opp in context.solicitations[:3])
            parts.append("")
        return "\n".join(parts) + "\n"

    @staticmethod
    def normalize_bullets(text: str) -> str:
        """Force every non-empty line into a "- " bullet."""
        lines = [line.strip() for line in text.strip().splitlines() if line.strip()]
        return _bullets([line.lstrip("-•* ").strip() for line in lines])


def get_analyzer(settings: Settings | None = None, today: date | None = None) -> Analyzer:
    """Select the analyzer implementation from settings.

    "auto" uses Gemini when an API key is configured, rules otherwise.
    """
    settings = settings or get_settings()
    use_gemini = settings.analyzer == "gemini" or (
        settings.analyzer == "auto" and settings.gemini_api_key is not None
    )
    if use_gemini:
        log.info("analyzer_selected", analyzer="gemini", model=settings.gemini_model)
        return GeminiAnalyzer(settings, fallback=RuleBasedAnalyzer(today))
    log.info("analyzer_selected", analyzer="rules")
    return RuleBasedAnalyzer(today)
