"""Remote reasoning-oracle advisor."""

from __future__ import annotations

import concurrent.futures
import json
import re
from typing import Any

from tripweaver.domain.enums import AdvisorQuestion, Confidence
from tripweaver.domain.exceptions import AdvisorError
from tripweaver.domain.models import AdvisorOption, AdvisorRequest, AdvisorResponse

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)

_QUESTION_TEXT = {
    AdvisorQuestion.LATE_ARRIVAL: "The traveller arrives late. What should they do first?",
    AdvisorQuestion.GAP_FILL: "There is free time before the next commitment. Which activity fits best?",
    AdvisorQuestion.ACTIVITY_ORDER: "Which of these places should be visited first?",
    AdvisorQuestion.ENERGY_CHECK: "The traveller has been sightseeing for hours. Continue or stop?",
    AdvisorQuestion.MEAL_DECISION: "Should the traveller eat now or wait?",
}


def build_prompt(request: AdvisorRequest) -> str:
    state = request.state
    options_text = "\n".join(
        f"- {o.id}: {o.label} ({o.duration_minutes} min)" + (f" - {o.description}" if o.description else "")
        for o in request.options
    )
    constraints_text = ""
    if request.constraints:
        constraints_text = "\nConstraints:\n" + "\n".join(f"- {c}" for c in request.constraints)

    return (
        "You are a travel day-planning assistant. Reply with JSON only.\n\n"
        "Traveller situation:\n"
        f"- Time: {state.time}\n"
        f"- Location: {state.location}\n"
        f"- Time available: {state.available_hours:.1f}h\n"
        f"- Energy: {state.energy.value}\n"
        f"- Meals: {state.meals}\n"
        f"- Day type: {state.day_type.value}\n"
        f"- Attractions still pending: {state.pending_count}\n"
        f"{constraints_text}\n\n"
        f"Question: {_QUESTION_TEXT[request.question]}\n\n"
        f"Options:\n{options_text}\n\n"
        'Answer as {"chosen_id": "<option id>", "rationale": "<short reason>", '
        '"confidence": "high|medium|low"}'
    )


def parse_response(text: str, options: list[AdvisorOption]) -> AdvisorResponse:
    match = _JSON_OBJECT_RE.search(text or "")
    if match is None:
        raise AdvisorError("oracle reply contains no JSON object")
    try:
        payload: dict[str, Any] = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise AdvisorError(f"oracle reply is not valid JSON: {exc}") from exc

    chosen = payload.get("chosen_id") or payload.get("chosenId")
    if chosen not in {o.id for o in options}:
        raise AdvisorError(f"oracle chose an unknown option: {chosen!r}")

    try:
        confidence = Confidence(str(payload.get("confidence", "medium")).lower())
    except ValueError:
        confidence = Confidence.MEDIUM
    rationale = payload.get("rationale") or payload.get("reasoning") or "oracle recommendation"
    return AdvisorResponse(chosen_id=chosen, rationale=str(rationale), confidence=confidence, source="oracle")


class OracleAdvisor:
    """One blocking oracle round trip per ``advise`` call, bounded by a timeout.

    Any failure surfaces as ``AdvisorError`` so the selector can fall back.
    """

    def __init__(self, llm: Any, *, timeout_seconds: float = 8.0):
        self._llm = llm
        self._timeout = timeout_seconds

    def advise(self, request: AdvisorRequest) -> AdvisorResponse:
        prompt = build_prompt(request)
        pool = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        try:
            future = pool.submit(self._llm.invoke, prompt)
            reply = future.result(timeout=self._timeout)
        except concurrent.futures.TimeoutError as exc:
            raise AdvisorError(f"oracle timed out after {self._timeout}s") from exc
        except Exception as exc:
            raise AdvisorError(f"oracle call failed: {exc}") from exc
        finally:
            # a hung call must not hold up trip generation
            pool.shutdown(wait=False, cancel_futures=True)
        return parse_response(getattr(reply, "content", ""), request.options)
