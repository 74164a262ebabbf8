"""
Suggesters turn a job posting's text into proposed custom fields.

RuleBasedSuggester works offline from keyword cues. AIFieldSuggester asks the
configured model and is wrapped in FallbackSuggester so a failed or empty AI
answer still yields the keyword-based suggestions.
"""
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.core import prompts
from app.core.config import settings
from app.schemas.fields import FieldType, JobContext, SuggestedField
from app.services.ai_orchestrator import AIOrchestrator

logger = logging.getLogger(__name__)

# (pattern, technology) pairs used for the "Primary Technology" question
_STACK_CUES = [
    (r"react", "React"),
    (r"\bnode", "Node.js"),
    (r"typescript|\bts\b", "TypeScript"),
    (r"python", "Python"),
    (r"\baws\b", "AWS"),
    (r"docker", "Docker"),
]


def _has(pattern: str, text: str) -> bool:
    return re.search(pattern, text) is not None


def suggest_fields_for_job(title: str, description: str, requirements: str, limit: int = 10) -> List[SuggestedField]:
    text = f"{title}\n{description}\n{requirements}".lower()
    fields: List[Dict[str, Any]] = []

    if _has(r"\byears?\b|\bexperience\b", text):
        fields.append({
            "field_label": "Years of Relevant Experience",
            "field_type": FieldType.NUMBER,
            "field_required": True,
            "field_placeholder": "e.g., 3",
        })

    if _has(r"portfolio|github|git hub", text):
        fields.append({
            "field_label": "Portfolio or GitHub URL",
            "field_type": FieldType.TEXT,
            "field_placeholder": "https://...",
        })
    if _has(r"linkedin", text):
        fields.append({
            "field_label": "LinkedIn Profile URL",
            "field_type": FieldType.TEXT,
            "field_placeholder": "https://www.linkedin.com/in/your-profile",
        })

    if _has(r"cover letter|motivation", text):
        fields.append({
            "field_label": "Motivation / Cover Letter",
            "field_type": FieldType.TEXTAREA,
            "field_placeholder": "Share why you are a great fit for this role",
        })

    stack = [name for pattern, name in _STACK_CUES if _has(pattern, text)]
    if len(stack) >= 2:
        fields.append({
            "field_label": "Primary Technology",
            "field_type": FieldType.SELECT,
            "field_required": True,
            "field_options": stack,
        })

    if _has(r"shift|schedule|availability|hours", text):
        fields.append({
            "field_label": "Availability",
            "field_type": FieldType.RADIO,
            "field_options": ["Immediate", "2 weeks", "1 month", "More than 1 month"],
        })

    if _has(r"remote|hybrid|onsite|on-site", text):
        fields.append({
            "field_label": "Work Preference",
            "field_type": FieldType.RADIO,
            "field_options": ["Remote", "Hybrid", "On-site"],
        })

    if _has(r"writing|sample|design|figma|case study", text):
        fields.append({
            "field_label": "Sample or Portfolio Upload",
            "field_type": FieldType.FILE,
            "field_help_text": "Attach a relevant sample (PDF, DOCX, or image)",
        })

    # Baseline when the posting gives no cues
    if not fields:
        fields.extend([
            {"field_label": "Years of Relevant Experience", "field_type": FieldType.NUMBER, "field_required": True},
            {"field_label": "LinkedIn Profile URL", "field_type": FieldType.TEXT,
             "field_placeholder": "https://www.linkedin.com/in/..."},
        ])

    return _dedupe_by_label([SuggestedField.model_validate(field) for field in fields])[:limit]


def _dedupe_by_label(fields: List[SuggestedField]) -> List[SuggestedField]:
    seen = set()
    unique = []
    for field in fields:
        key = field.label.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(field)
    return unique


def parse_suggestions(data: Any, limit: int = 10) -> List[SuggestedField]:
    """
    Extract suggested fields from a model's JSON answer.
    Anything that is not a list of well-formed field objects is dropped, so a
    malformed answer yields an empty list rather than an error.
    """
    raw_fields = data.get("fields") if isinstance(data, dict) else data
    if not isinstance(raw_fields, list):
        logger.warning("AI suggestion response has no field list")
        return []

    parsed = []
    for item in raw_fields:
        if not isinstance(item, dict):
            continue
        try:
            field = SuggestedField.model_validate(item)
        except ValidationError as e:
            logger.info(f"Skipping malformed suggested field: {e.error_count()} error(s)")
            continue
        if field.label.strip():
            parsed.append(field)
    return _dedupe_by_label(parsed)[:limit]


class RuleBasedSuggester:
    def __init__(self, limit: Optional[int] = None):
        self.limit = limit or settings.max_suggested_fields

    def suggest(self, context: JobContext) -> List[SuggestedField]:
        return suggest_fields_for_job(context.title, context.description, context.requirements, self.limit)


class AIFieldSuggester:
    def __init__(self, limit: Optional[int] = None):
        self.limit = limit or settings.max_suggested_fields

    def suggest(self, context: JobContext) -> List[SuggestedField]:
        system_prompt = prompts.get_prompt(prompts.FIELD_SUGGESTION_SYSTEM, max_fields=self.limit)
        user_content = prompts.get_prompt(
            prompts.FIELD_SUGGESTION_USER_TEMPLATE,
            title=context.title,
            description=context.description[:6000],
            requirements=context.requirements[:4000],
        )
        data = AIOrchestrator.analyze_text(system_prompt, user_content, temperature=settings.ai.temperature)
        return parse_suggestions(data, self.limit)


class FallbackSuggester:
    """Use `primary`; fall back to `fallback` when it fails or suggests nothing."""

    def __init__(self, primary, fallback):
        self.primary = primary
        self.fallback = fallback

    def suggest(self, context: JobContext) -> List[SuggestedField]:
        try:
            suggestions = self.primary.suggest(context)
        except Exception as e:
            logger.warning(f"Primary field suggester failed, using fallback: {e}")
            return self.fallback.suggest(context)
        return suggestions or self.fallback.suggest(context)


def get_field_suggester():
    """FastAPI dependency: the AI suggester when a key is configured, else the rule-based one."""
    if settings.ai.openrouter_api_key and not settings.ai.kill_switch:
        return FallbackSuggester(AIFieldSuggester(), RuleBasedSuggester())
    return RuleBasedSuggester()
