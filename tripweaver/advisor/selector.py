"""Advisor selection: cache, oracle call budget, deterministic fallback."""

from __future__ import annotations

import threading
from typing import Optional

from tripweaver.advisor.fallback_rules import FallbackAdvisor
from tripweaver.advisor.interfaces import Advisor
from tripweaver.advisor.oracle import OracleAdvisor
from tripweaver.config.settings import PlannerSettings
from tripweaver.domain.exceptions import AdvisorError
from tripweaver.domain.models import AdvisorRequest, AdvisorResponse
from tripweaver.infrastructure.llm_factory import get_llm
from tripweaver.infrastructure.logging import StructuredLogger, get_logger


def clock_bucket(clock: str) -> str:
    hour = int(str(clock).split(":")[0])
    if hour < 12:
        return "morning"
    if hour < 17:
        return "afternoon"
    if hour < 21:
        return "evening"
    return "night"


class DecisionAdvisor:
    """Single seam every planner goes through for an ambiguous choice.

    Answers come from the per-trip cache, then the oracle while its call
    budget lasts, then the fallback rules. Only oracle answers are cached,
    and cache hits never count against the budget.
    """

    def __init__(
        self,
        oracle: Optional[Advisor] = None,
        *,
        fallback: Optional[Advisor] = None,
        max_calls: int = 5,
        logger: Optional[StructuredLogger] = None,
    ):
        self._oracle = oracle
        self._fallback = fallback or FallbackAdvisor()
        self._max_calls = max(0, max_calls)
        self._calls = 0
        self._cache: dict[tuple[str, str, str], AdvisorResponse] = {}
        self._lock = threading.Lock()
        self._logger = logger or get_logger()
        self.cache_hits = 0

    @property
    def calls(self) -> int:
        return self._calls

    @property
    def max_calls(self) -> int:
        return self._max_calls

    @property
    def oracle_configured(self) -> bool:
        return self._oracle is not None

    @staticmethod
    def cache_key(request: AdvisorRequest) -> tuple[str, str, str]:
        return (
            request.question.value,
            clock_bucket(request.state.time),
            request.state.energy.value,
        )

    def advise(self, request: AdvisorRequest) -> AdvisorResponse:
        key = self.cache_key(request)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None and cached.chosen_id in {o.id for o in request.options}:
                self.cache_hits += 1
                return cached.model_copy(update={"source": "cache"})
            use_oracle = self._oracle is not None and self._calls < self._max_calls
            if use_oracle:
                self._calls += 1

        if use_oracle:
            try:
                response = self._oracle.advise(request)
            except AdvisorError as exc:
                self._logger.warning(
                    "advisor",
                    f"oracle unavailable, using fallback rules: {exc}",
                    question=request.question.value,
                )
            else:
                with self._lock:
                    self._cache[key] = response
                self._logger.decision(request.question.value, response.chosen_id, source="oracle")
                return response

        response = self._fallback.advise(request)
        self._logger.decision(request.question.value, response.chosen_id, source="fallback")
        return response

    def reset(self) -> None:
        with self._lock:
            self._cache.clear()
            self._calls = 0
            self.cache_hits = 0


def build_decision_advisor(
    settings: PlannerSettings,
    logger: Optional[StructuredLogger] = None,
) -> DecisionAdvisor:
    """Wire the oracle in when a key is configured; otherwise rules only."""
    oracle: Optional[Advisor] = None
    if settings.advisor_enabled:
        llm = get_llm()
        if llm is not None:
            oracle = OracleAdvisor(llm, timeout_seconds=settings.advisor_timeout_seconds)
    return DecisionAdvisor(oracle, max_calls=settings.advisor_max_calls, logger=logger)
