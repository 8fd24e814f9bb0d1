"""Generative content adapter backed by the OpenAI chat completions API."""

import logging
from typing import Any

from openai import APIConnectionError, APIStatusError, APITimeoutError, OpenAI

from itinerary_engine.adapters.exceptions import (
    CollaboratorConnectionError,
    CollaboratorResponseError,
    CollaboratorTimeoutError,
)
from itinerary_engine.adapters.normalize import normalize_activity, normalize_proposal
from itinerary_engine.adapters.prompts import (
    DISCOVERY_SYSTEM_PROMPT,
    REPLACEMENT_SYSTEM_PROMPT,
    build_discovery_prompt,
    build_replacement_prompt,
)
from itinerary_engine.config import Settings, get_settings, require_api_key
from itinerary_engine.exec import ToolExecutor
from itinerary_engine.models import (
    CandidateProposal,
    DiscoveryContext,
    RegenerationRequest,
    ReplacementResult,
)
from itinerary_engine.utils.json_repair import parse_llm_json

logger = logging.getLogger(__name__)


class OpenAIContentGenerator:
    """ContentGenerator implementation using an OpenAI chat model."""

    def __init__(
        self,
        settings: Settings | None = None,
        executor: ToolExecutor | None = None,
        client: OpenAI | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.executor = executor or ToolExecutor(settings=self.settings)
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            api_key = require_api_key(self.settings.openai_api_key, "OPENAI_API_KEY")
            self._client = OpenAI(
                api_key=api_key,
                timeout=self.settings.generation_timeout_s,
                max_retries=0,
            )
        return self._client

    def _complete(self, args: dict[str, Any]) -> dict[str, Any]:
        """Run one chat completion. Raises CollaboratorError subclasses."""
        try:
            response = self._get_client().chat.completions.create(
                model=self.settings.openai_model,
                messages=[
                    {"role": "system", "content": args["system"]},
                    {"role": "user", "content": args["prompt"]},
                ],
                temperature=args.get("temperature", 0.4),
                max_tokens=args.get("max_tokens", 2000),
            )
        except APITimeoutError as e:
            raise CollaboratorTimeoutError(f"Content generation timed out: {e}") from e
        except APIConnectionError as e:
            raise CollaboratorConnectionError(f"Unable to reach content service: {e}") from e
        except APIStatusError as e:
            raise CollaboratorResponseError(
                f"Content service returned error {e.status_code}"
            ) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise CollaboratorResponseError("Content service returned an empty message")
        return {"content": content}

    def _generate(
        self, tool: str, system: str, prompt: str, temperature: float
    ) -> tuple[Any, bool, str | None]:
        """Returns (parsed JSON, repaired, error)."""
        response = self.executor.execute(
            tool,
            self._complete,
            {"system": system, "prompt": prompt, "temperature": temperature},
            timeout_s=self.settings.generation_timeout_s,
        )
        if not response.ok or response.data is None:
            return None, False, response.error or "content_unavailable"

        outcome = parse_llm_json(response.data.get("content"))
        if not outcome.ok:
            logger.warning(
                "Unparseable content response",
                extra={"tool": tool, "error": outcome.error},
            )
            return None, False, f"unparseable_response: {outcome.error}"
        if outcome.repaired:
            logger.info("Content response needed JSON repair", extra={"tool": tool})
        return outcome.data, outcome.repaired, None

    def propose_candidates(self, context: DiscoveryContext) -> CandidateProposal:
        """Propose waypoints and alternates for the trip described by ``context``."""
        data, repaired, error = self._generate(
            "content.discovery",
            DISCOVERY_SYSTEM_PROMPT,
            build_discovery_prompt(context),
            temperature=0.4,
        )
        if error is not None:
            return CandidateProposal(ok=False, error=error)
        return normalize_proposal(data, repaired=repaired)

    def propose_replacement(self, request: RegenerationRequest) -> ReplacementResult:
        """Propose one activity that fills the request's time window."""
        data, _, error = self._generate(
            "content.replacement",
            REPLACEMENT_SYSTEM_PROMPT,
            build_replacement_prompt(request),
            temperature=0.7,
        )
        if error is not None:
            return ReplacementResult(ok=False, error=error)

        activity = normalize_activity(data, request.time_window)
        if activity is None:
            return ReplacementResult(ok=False, error="Replacement has no usable activity")
        return ReplacementResult(ok=True, activity=activity)
