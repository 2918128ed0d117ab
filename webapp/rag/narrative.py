"""Narrative override gate: optional LLM rewrite of section text.

Implements:
  - LLMClient: one-shot chat against OpenAI or Anthropic
  - LLMNarrativeWriter: builds the rewrite prompt and parses the JSON reply
  - NarrativeOverrideGate: applies string overrides to OK sections only

The gate never raises. A writer failure, an unparseable reply or a payload
that is not a JSON object all mean "no overrides".
"""

import json
import logging
import re
from typing import Optional, Protocol

from generators.section_builders import INSUFFICIENT_SOURCES_TEXT
from schemas.brief import (
    NARRATIVE_SECTIONS,
    BriefSections,
    QueryPlan,
    SectionStatus,
)
from schemas.hotel import HotelRecord
from webapp.rag.prompts import NARRATIVE_SYSTEM, render_narrative_user

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-haiku-4-5-20251001",
}


class LLMClient:
    """Unified chat client for OpenAI and Anthropic.

    Provider SDKs are imported lazily so the deterministic path never needs
    them installed and configured.
    """

    def __init__(
        self,
        provider: str = "openai",
        model: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        self.provider = provider

        if provider == "anthropic":
            import anthropic
            self.model = model or DEFAULT_MODELS["anthropic"]
            self.client = anthropic.Anthropic(api_key=api_key)
        elif provider == "openai":
            from openai import OpenAI
            self.model = model or DEFAULT_MODELS["openai"]
            self.client = OpenAI(api_key=api_key)
        else:
            raise ValueError(f"Unsupported provider: {provider}")

    def chat(
        self,
        system: str,
        user: str,
        temperature: float = 0.2,
        max_tokens: int = 2048,
    ) -> str:
        """Send a single chat completion request and return the text."""
        if self.provider == "anthropic":
            response = self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system,
                messages=[{"role": "user", "content": user}],
            )
            return response.content[0].text

        response = self.client.chat.completions.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        )
        return response.choices[0].message.content or ""


class NarrativeWriter(Protocol):
    """Capability that rewrites section drafts.

    ``rewrite`` returns whatever the service produced; the gate validates it.
    """

    @property
    def available(self) -> bool: ...

    def rewrite(self, context: dict) -> object: ...


def _parse_json(text: str) -> object:
    """Extract a JSON value from an LLM response.

    Tries a fenced code block first, then the outermost ``{...}`` span.
    Raises ValueError when nothing parses.
    """
    match = re.search(r"```(?:json)?\s*\n([\s\S]*?)\n```", text)
    if match:
        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError:
            pass

    match = re.search(r"\{[\s\S]*\}", text)
    if match:
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            pass

    raise ValueError("No JSON object found in narrative response")


class LLMNarrativeWriter:
    """NarrativeWriter backed by an LLMClient."""

    def __init__(
        self,
        provider: str = "openai",
        model: Optional[str] = None,
        api_key: str = "",
    ):
        self.provider = provider
        self.model = model
        self.api_key = api_key
        self._client: Optional[LLMClient] = None

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> LLMClient:
        if self._client is None:
            self._client = LLMClient(self.provider, self.model, self.api_key)
        return self._client

    def rewrite(self, context: dict) -> object:
        system = NARRATIVE_SYSTEM.format(insufficient=INSUFFICIENT_SOURCES_TEXT)
        text = self._get_client().chat(system, render_narrative_user(context))
        return _parse_json(text)


def build_narrative_context(
    hotel: HotelRecord,
    plan: QueryPlan,
    sections: BriefSections,
) -> dict:
    """Everything the writer may see. Promotions are left out."""
    drafts = {}
    for key in NARRATIVE_SECTIONS:
        section = sections.get(key)
        if section is None:
            continue
        drafts[key.value] = {
            "status": section.status.value,
            "contentDraft": section.content,
            "citations": [c.model_dump(mode="json", by_alias=True) for c in section.citations],
            "semanticChunksUsed": [
                c.model_dump(mode="json", by_alias=True) for c in section.semantic_chunks_used
            ],
            "conflictsIgnored": [
                c.model_dump(mode="json", by_alias=True) for c in section.conflicts_ignored
            ],
        }

    return {
        "hotel": {
            "hotelId": hotel.hotel_id,
            "name": hotel.name,
            "region": hotel.region,
            "country": hotel.country,
            "category": hotel.category,
            "positioningTags": list(hotel.positioning_tags),
        },
        "queryPlan": plan.model_dump(mode="json", by_alias=True),
        "sections": drafts,
    }


class NarrativeOverrideGate:
    """Requests rewrites and applies the safe subset to a brief's sections."""

    def __init__(self, writer: NarrativeWriter):
        self.writer = writer

    def request_overrides(self, context: dict) -> dict[str, str]:
        """Call the writer once; any failure yields no overrides."""
        try:
            payload = self.writer.rewrite(context)
        except Exception as e:
            logger.warning("Narrative rewrite failed, keeping deterministic text: %s", e)
            return {}

        if not isinstance(payload, dict):
            logger.warning("Narrative rewrite returned %s, expected an object", type(payload).__name__)
            return {}

        allowed = {key.value for key in NARRATIVE_SECTIONS}
        overrides = {
            key: value
            for key, value in payload.items()
            if key in allowed and isinstance(value, str)
        }
        dropped = sorted(set(payload) - set(overrides))
        if dropped:
            logger.info("Narrative keys ignored: %s", dropped)
        return overrides

    def apply(
        self,
        hotel: HotelRecord,
        plan: QueryPlan,
        sections: BriefSections,
    ) -> BriefSections:
        """Return sections with overrides applied to OK narrative sections."""
        overrides = self.request_overrides(build_narrative_context(hotel, plan, sections))
        if not overrides:
            return sections

        updates = {}
        for key in NARRATIVE_SECTIONS:
            section = sections.get(key)
            text = overrides.get(key.value)
            if section is None or text is None or section.status != SectionStatus.OK:
                continue
            updates[key] = section.model_copy(update={"content": text, "ai_modified": True})

        logger.info("Narrative overrides applied: %s", [k.value for k in updates])
        return sections.replace(updates)
