# lexiflow/core/use_cases/inference_cascade.py
import asyncio
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import structlog

from lexiflow.core.ports.llm_port import ILanguageModel

logger = structlog.get_logger()


@dataclass(frozen=True)
class InferenceStrategy:
    """One named attempt of the cascade, bounded by its own timeout."""
    name: str
    model_id: str
    timeout: float


@dataclass
class Completion:
    text: str
    strategy: str


@dataclass
class JsonCompletion:
    """
    `data` is set when some strategy produced a JSON object. Otherwise
    `raw` holds the last non-empty unparsable output so it is not lost.
    """
    data: Optional[Dict[str, Any]]
    raw: Optional[str]
    strategy: Optional[str]


def clean_json_response(response_text: Optional[str]) -> Optional[str]:
    """
    Helper to extract raw JSON from potential markdown wrapping.
    e.g., turns "```json\n{...}\n```" into "{...}"
    """
    if not response_text:
        return None

    clean_text = response_text.strip()

    if clean_text.startswith("```"):
        # Skip the opening fence line ("```json")
        first_newline = clean_text.find("\n")
        clean_text = clean_text[first_newline + 1:] if first_newline != -1 else clean_text[3:]
        if clean_text.rstrip().endswith("```"):
            clean_text = clean_text.rstrip()[:-3]

    return clean_text.strip() or None


def parse_json_object(response_text: Optional[str]) -> Optional[Dict[str, Any]]:
    clean = clean_json_response(response_text)
    if not clean:
        return None
    try:
        data = json.loads(clean)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


class InferenceCascade:
    """
    Ordered list of inference strategies (fast model first, then the more
    capable fallback). Strategies are tried in sequence until one returns a
    non-empty, well-formed result. An error, a timeout and an empty answer
    all count as a failed attempt and move on to the next strategy.
    """

    def __init__(self, llm: ILanguageModel, strategies: Sequence[InferenceStrategy]):
        self.llm = llm
        self.strategies: List[InferenceStrategy] = list(strategies)

    @classmethod
    def from_models(cls, llm: ILanguageModel, model_ids: Sequence[str], timeout: float) -> "InferenceCascade":
        names = ("fast", "fallback")
        strategies = [
            InferenceStrategy(name=names[i] if i < len(names) else f"tier_{i}", model_id=model_id, timeout=timeout)
            for i, model_id in enumerate(model_ids)
        ]
        return cls(llm, strategies)

    async def _attempt(
        self, strategy: InferenceStrategy, prompt: str, system: Optional[str], json_mode: bool
    ) -> Optional[str]:
        try:
            text = await asyncio.wait_for(
                self.llm.run(strategy.model_id, prompt, system=system, json_mode=json_mode),
                timeout=strategy.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("cascade_attempt_timeout", strategy=strategy.name, model=strategy.model_id,
                           timeout=strategy.timeout)
            return None
        except Exception as e:
            logger.warning("cascade_attempt_failed", strategy=strategy.name, model=strategy.model_id,
                           error=str(e))
            return None

        if not text or not text.strip():
            logger.warning("cascade_attempt_empty", strategy=strategy.name, model=strategy.model_id)
            return None
        return text.strip()

    async def complete(self, prompt: str, *, system: Optional[str] = None) -> Optional[Completion]:
        for strategy in self.strategies:
            text = await self._attempt(strategy, prompt, system, json_mode=False)
            if text is not None:
                logger.info("cascade_resolved", strategy=strategy.name)
                return Completion(text=text, strategy=strategy.name)

        logger.warning("cascade_exhausted", strategies=[s.name for s in self.strategies])
        return None

    async def complete_json(self, prompt: str, *, system: Optional[str] = None) -> Optional[JsonCompletion]:
        last_raw: Optional[str] = None
        last_strategy: Optional[str] = None

        for strategy in self.strategies:
            text = await self._attempt(strategy, prompt, system, json_mode=True)
            if text is None:
                continue

            data = parse_json_object(text)
            if data is not None:
                logger.info("cascade_resolved", strategy=strategy.name, structured=True)
                return JsonCompletion(data=data, raw=text, strategy=strategy.name)

            logger.warning("cascade_json_unparsable", strategy=strategy.name, preview=text[:80])
            last_raw, last_strategy = text, strategy.name

        if last_raw is not None:
            return JsonCompletion(data=None, raw=last_raw, strategy=last_strategy)

        logger.warning("cascade_exhausted", strategies=[s.name for s in self.strategies])
        return None
