"""
Narrative Generator: turns a structured analysis request into natural-language
insight text through the OpenAI chat API in JSON mode.

Output is not schema-guaranteed, so everything coming back goes through
NarrativeAnalysis validation. Transport failures raise NarrativeUnavailableError
and the caller decides what to skip.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from langsmith import traceable
from openai import AsyncOpenAI, OpenAIError

from momentum.config import settings
from momentum.schemas.narrative import NarrativeAnalysis

logger = logging.getLogger("momentum")

SYSTEM_PROMPT = (
    "You are Momentum, an analyst for a personal goal-tracking app. "
    "Reply with a single JSON object and nothing else."
)

RESPONSE_CONTRACT = (
    "Respond with JSON using exactly these keys:\n"
    "- confidence: integer 0-100, your confidence in this analysis\n"
    "- likelihood: integer 0-100, likelihood of completing current goals (null if not asked)\n"
    "- factors: array of strings, key factors behind the result\n"
    "- strengths: array of strings, what the user does well\n"
    "- risks: array of strings, areas where the user might struggle or could improve\n"
    "- recommendations: array of short, specific, actionable recommendations"
)

PROMPTS = {
    "completion_prediction": (
        "Analyze the following goal achievement data and predict how likely the user is "
        "to complete their active goals on time.\n\n"
        "User Data:\n"
        "- Total Goals: {total_goals}\n"
        "- Active Goals: {active_goals}\n"
        "- Completed Goals: {completed_goals}\n"
        "- Average Progress: {avg_progress:.1f}%\n"
        "- Total Tasks: {total_tasks}\n"
        "- Completed Tasks: {completed_tasks}\n"
        "- Progress Entries (last 7 days): {recent_progress_entries}\n\n"
        "Focus on data-driven insights and practical recommendations."
    ),
    "success_factors": (
        "Analyze this user's goal achievement data to identify success factors.\n\n"
        "Success Metrics:\n"
        "- Goal Completion Rate: {goal_completion_rate}%\n"
        "- Completed Goals: {completed_goals} of {total_goals}\n"
        "- Task Completion Rate: {task_completion_rate}%\n"
        "- Average Days To Complete A Goal: {avg_days_to_complete}\n"
        "- Active Habits: {active_habits}\n"
        "- Top Goal Categories: {top_categories}\n\n"
        "Recommendations should be high-level strategic advice."
    ),
}


class NarrativeUnavailableError(Exception):
    """Raised when the Narrative Generator cannot be reached or times out."""
    pass


def build_prompt(prompt_context: Dict[str, Any]) -> str:
    analysis = prompt_context.get("analysis")
    template = PROMPTS.get(analysis)
    if template is None:
        raise ValueError(f"Unknown narrative analysis: {analysis!r}")
    data = dict(prompt_context.get("data") or {})
    if isinstance(data.get("top_categories"), list):
        data["top_categories"] = ", ".join(data["top_categories"]) or "none"
    return f"{template.format(**data)}\n\n{RESPONSE_CONTRACT}"


def parse_narrative(content: Optional[str]) -> NarrativeAnalysis:
    """Validate raw model output. Anything unusable degrades to defaults."""
    try:
        payload = json.loads(content or "")
    except (TypeError, ValueError):
        logger.warning("narrative_invalid_json", extra={"content_preview": (content or "")[:200]})
        return NarrativeAnalysis(malformed=True)
    if not isinstance(payload, dict):
        logger.warning("narrative_not_an_object", extra={"payload_type": type(payload).__name__})
        return NarrativeAnalysis(malformed=True)

    known = {k: payload[k] for k in NarrativeAnalysis.model_fields if k in payload and k != "malformed"}
    analysis = NarrativeAnalysis.model_validate(known)
    if analysis.confidence is None:
        analysis.malformed = True
    return analysis


class NarrativeGenerator:
    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self._client = client
        self.model = model or settings.openai_model
        self.timeout = timeout or settings.narrative_timeout_seconds

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not settings.openai_api_key:
                raise NarrativeUnavailableError("OpenAI API key not configured")
            self._client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=self.timeout,
                max_retries=1,
            )
        return self._client

    @traceable(run_type="llm", name="narrative_analysis")
    async def analyze(self, prompt_context: Dict[str, Any]) -> NarrativeAnalysis:
        prompt = build_prompt(prompt_context)
        try:
            completion = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    response_format={"type": "json_object"},
                ),
                timeout=self.timeout,
            )
        except (OpenAIError, asyncio.TimeoutError) as e:
            raise NarrativeUnavailableError(f"{prompt_context.get('analysis')}: {e}") from e

        analysis = parse_narrative(completion.choices[0].message.content)
        logger.info(
            "narrative_parsed",
            extra={"analysis": prompt_context.get("analysis"), "malformed": analysis.malformed},
        )
        return analysis
