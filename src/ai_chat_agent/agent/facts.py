"""
Sticky facts - a small label/value table the model keeps up to date.

Each turn the current table and the new user message are sent to the
provider, which must answer with a bare JSON object. A parseable object
replaces the table; anything else leaves the previous table in place.
"""

import json
from dataclasses import dataclass, field

import structlog

from ..llm.base import BaseLLM

logger = structlog.get_logger()

EXTRACTION_SYSTEM_PROMPT = (
    "You extract durable facts from conversations. "
    "Respond with a bare JSON object mapping short labels to short string values. "
    "No markdown fencing, no explanation."
)

EXTRACTION_INSTRUCTION = """Current facts:
{facts}

New user message:
{message}

Update the facts with anything new or changed in the message (names, preferences,
goals, constraints, decisions). Keep facts that are still true. Return the complete
updated table as a single JSON object of label -> string. Return only the JSON object."""


@dataclass
class FactExtraction:
    """Outcome of a fact extraction call.

    ``ok`` is False when the response could not be parsed; ``facts`` then
    holds the table that was in effect before the call.
    """

    ok: bool
    facts: dict[str, str] = field(default_factory=dict)
    error: str | None = None
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def overhead_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_facts(text: str) -> FactExtraction:
    """Parse a provider response into a facts table."""
    try:
        data = json.loads(_strip_fences(text))
    except json.JSONDecodeError as e:
        return FactExtraction(ok=False, error=f"invalid JSON: {e.msg}")

    if not isinstance(data, dict):
        return FactExtraction(ok=False, error=f"expected an object, got {type(data).__name__}")

    facts: dict[str, str] = {}
    for label, value in data.items():
        if isinstance(value, (dict, list)):
            return FactExtraction(ok=False, error=f"value for {label!r} is not a string")
        if value is None:
            continue
        facts[str(label)] = value if isinstance(value, str) else json.dumps(value)

    return FactExtraction(ok=True, facts=facts)


def format_facts_for_prompt(facts: dict[str, str]) -> str:
    if not facts:
        return "no facts yet"
    return json.dumps(facts, ensure_ascii=False, indent=2)


async def extract_facts(
    llm: BaseLLM,
    facts: dict[str, str],
    message: str,
) -> FactExtraction:
    """Ask the provider for an updated facts table.

    Provider failures propagate. Unparseable output degrades to the previous
    table and is reported through ``FactExtraction.ok``.
    """
    response = await llm.generate_once(
        EXTRACTION_INSTRUCTION.format(facts=format_facts_for_prompt(facts), message=message),
        system_prompt=EXTRACTION_SYSTEM_PROMPT,
    )

    result = parse_facts(response.content)
    result.input_tokens = response.input_tokens
    result.output_tokens = response.output_tokens

    if result.ok:
        logger.info("Facts updated", count=len(result.facts))
    else:
        logger.warning("Fact extraction unparseable, keeping previous facts", error=result.error)
        result.facts = dict(facts)

    return result
