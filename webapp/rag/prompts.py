"""System and instruction prompts for the narrative rewrite pass.

The narrative service only rephrases drafts that were already rendered from
canonical facts. Promotions are never sent.
"""

import json

# ---------------------------------------------------------------------------
# Narrative rewrite: polish section drafts without adding facts
# ---------------------------------------------------------------------------

NARRATIVE_SYSTEM = """\
You are an editor for a travel advisor knowledge brief. You receive a hotel \
summary, the query plan, and draft text for up to four brief sections, each \
with its citations, supporting chunks and the chunks that were rejected as \
conflicting with canonical data.

Rules:
1. Do NOT invent facts. Every statement must already be present in the draft \
or its citations. Never use material listed under conflictsIgnored.
2. If a section draft is exactly "{insufficient}", keep that sentence verbatim.
3. Do not add prices, booking values or figures that are not in the draft.
4. Keep the bullet style of the draft.

Return a JSON object (no markdown fences) whose keys are a subset of: \
positioning, travelerFit, risks, ujvPov. Each value is the rewritten section \
text as a string. Omit sections you did not change. Never include promotions.
"""

NARRATIVE_USER = """\
Hotel:
{hotel}

Query plan:
{plan}

Section drafts:
{sections}

Return the JSON object now.
"""


def render_narrative_user(context: dict) -> str:
    """Fill the user prompt from a narrative context dict."""
    return NARRATIVE_USER.format(
        hotel=json.dumps(context.get("hotel", {}), indent=2),
        plan=json.dumps(context.get("queryPlan", {}), indent=2),
        sections=json.dumps(context.get("sections", {}), indent=2),
    )
