"""LLM scoring oracle: rates a batch of creators against the ideal profiles.

The model is asked for JSON but nothing guarantees it complies, so the reply
goes through ``parse_oracle_response`` which tolerates missing or malformed
fields per creator and only fails when the payload as a whole is unusable.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from creatorscout.config import get_settings

logger = logging.getLogger(__name__)

MIN_SCORE = 0
MAX_SCORE = 10

PROMPT_TEMPLATE = """You are an influencer marketing analyst. Given {profile_count} ideal creator profiles and a batch of scraped creator data, score each creator's fit (0-10) against each profile.

Ideal Profiles:
{profile_descriptions}

Creators to analyze:
{creators}

Return a JSON object with a "results" array. Each element must have:
- "creator_id": the creator's id
- "scores": an object with keys being the exact profile names and values being integers 0-10
- "best_fit": the profile name with the highest score
- "reasoning": 1-2 sentence explanation

Profile names to use as keys: {profile_names}"""


class OracleError(Exception):
    """The oracle could not score a batch."""

    transient = False


class OracleUnavailableError(OracleError):
    """Network, timeout, rate-limit or server-side failure; worth retrying."""

    transient = True


class OracleResponseError(OracleError):
    """The oracle answered, but not with the structure we asked for."""


@dataclass
class OracleVerdict:
    creator_id: str
    scores: dict[str, int] = field(default_factory=dict)
    best_fit: str = ""
    reasoning: str = ""


def build_scoring_prompt(batch: list[dict], profile_descriptions: str, profile_names: list[str]) -> str:
    return PROMPT_TEMPLATE.format(
        profile_count=len(profile_names),
        profile_descriptions=profile_descriptions,
        creators=json.dumps(batch, indent=2, ensure_ascii=False),
        profile_names=json.dumps(profile_names, ensure_ascii=False),
    )


def _coerce_score(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return None
    return max(MIN_SCORE, min(MAX_SCORE, score))


def _coerce_scores(raw: Any) -> dict[str, int]:
    if not isinstance(raw, dict):
        return {}
    scores = {}
    for name, value in raw.items():
        score = _coerce_score(value)
        if score is not None:
            scores[str(name)] = score
    return scores


def parse_oracle_response(content: Optional[str]) -> list[OracleVerdict]:
    """Parse the oracle's JSON reply into verdicts.

    Accepts ``{"results": [...]}`` or a bare list. Elements without a
    ``creator_id`` are dropped; scores are coerced to ints in [0, 10] and
    non-numeric ones discarded.
    """
    if not content:
        raise OracleResponseError("Empty response from oracle")
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        raise OracleResponseError(f"Oracle response is not valid JSON: {e}") from e

    if isinstance(parsed, dict):
        results = parsed.get("results")
    else:
        results = parsed
    if not isinstance(results, list):
        raise OracleResponseError("Oracle response has no 'results' array")

    verdicts = []
    for item in results:
        if not isinstance(item, dict) or item.get("creator_id") in (None, ""):
            logger.debug("Dropping malformed oracle result: %r", item)
            continue
        verdicts.append(OracleVerdict(
            creator_id=str(item["creator_id"]),
            scores=_coerce_scores(item.get("scores")),
            best_fit=str(item.get("best_fit") or ""),
            reasoning=str(item.get("reasoning") or ""),
        ))
    return verdicts


class OpenAIScoringOracle:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        settings = get_settings()
        self.model = model or settings.openai_model
        self.temperature = settings.openai_temperature if temperature is None else temperature
        if client is None:
            api_key = api_key or settings.openai_api_key
            if not api_key:
                raise ValueError("OPENAI_API_KEY is required for the scoring oracle")
            client = AsyncOpenAI(api_key=api_key)
        self.client = client

    async def score_batch(
        self,
        batch: list[dict],
        profile_descriptions: str,
        profile_names: list[str],
    ) -> list[OracleVerdict]:
        prompt = build_scoring_prompt(batch, profile_descriptions, profile_names)
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
                temperature=self.temperature,
            )
        except (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError) as e:
            # APITimeoutError is a subclass of APIConnectionError
            raise OracleUnavailableError(f"Scoring oracle unavailable: {e}") from e
        except openai.OpenAIError as e:
            raise OracleError(f"Scoring oracle call failed: {e}") from e

        if not response.choices:
            raise OracleResponseError("Oracle returned no choices")
        return parse_oracle_response(response.choices[0].message.content)
