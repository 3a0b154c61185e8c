"""Deterministic answers for every advisor question, used when no oracle can answer."""

from __future__ import annotations

from typing import Callable, Optional

from tripweaver.domain.enums import AdvisorQuestion, Confidence, EnergyLevel
from tripweaver.domain.models import AdvisorOption, AdvisorRequest, AdvisorResponse

_MEAL_HOURS = (range(12, 15), range(19, 22))


def _find(options: list[AdvisorOption], *tokens: str) -> Optional[AdvisorOption]:
    for option in options:
        haystack = f"{option.id} {option.label}".lower()
        if any(token in haystack for token in tokens):
            return option
    return None


def _first_id(options: list[AdvisorOption]) -> str:
    return options[0].id if options else ""


def _late_arrival(request: AdvisorRequest) -> AdvisorResponse:
    options = request.options
    available = request.state.available_hours
    if available < 1:
        hotel = _find(options, "hotel")
        return AdvisorResponse(
            chosen_id=hotel.id if hotel else _first_id(options),
            rationale="late arrival: straight to the hotel",
            confidence=Confidence.HIGH,
        )
    if available < 3:
        dinner = _find(options, "dinner")
        if dinner is not None:
            return AdvisorResponse(
                chosen_id=dinner.id,
                rationale="evening arrival: dinner before the hotel",
                confidence=Confidence.MEDIUM,
            )
    shortest = min(options, key=lambda o: o.duration_minutes) if options else None
    return AdvisorResponse(
        chosen_id=shortest.id if shortest else "",
        rationale="limited time: shortest option",
        confidence=Confidence.MEDIUM,
    )


def _gap_fill(request: AdvisorRequest) -> AdvisorResponse:
    if not request.options:
        return AdvisorResponse(chosen_id="", rationale="no option offered", confidence=Confidence.HIGH)
    available_minutes = request.state.available_hours * 60
    best = min(request.options, key=lambda o: abs(o.duration_minutes - available_minutes))
    return AdvisorResponse(
        chosen_id=best.id,
        rationale=f"{best.label} ({best.duration_minutes} min) best matches the free time",
        confidence=Confidence.MEDIUM,
    )


def _activity_order(request: AdvisorRequest) -> AdvisorResponse:
    return AdvisorResponse(
        chosen_id=_first_id(request.options),
        rationale="keep the ranked order",
        confidence=Confidence.MEDIUM,
    )


def _energy_check(request: AdvisorRequest) -> AdvisorResponse:
    options = request.options
    if request.state.energy in (EnergyLevel.TIRED, EnergyLevel.EXHAUSTED):
        end = _find(options, "end")
        if end is not None:
            return AdvisorResponse(
                chosen_id=end.id,
                rationale=f"energy {request.state.energy.value}: end the day",
                confidence=Confidence.HIGH,
            )
    keep_going = _find(options, "continue")
    if keep_going is None:
        keep_going = next((o for o in options if "end" not in o.id), None)
    return AdvisorResponse(
        chosen_id=keep_going.id if keep_going else _first_id(options),
        rationale="enough energy to continue",
        confidence=Confidence.MEDIUM,
    )


def _meal_decision(request: AdvisorRequest) -> AdvisorResponse:
    options = request.options
    hour = int(request.state.time.split(":")[0])
    if any(hour in window for window in _MEAL_HOURS):
        meal = _find(options, "meal", "lunch", "dinner")
        return AdvisorResponse(
            chosen_id=meal.id if meal else _first_id(options),
            rationale=f"meal time ({request.state.time}): eat now",
            confidence=Confidence.HIGH,
        )
    wait = _find(options, "wait", "activity")
    return AdvisorResponse(
        chosen_id=wait.id if wait else _first_id(options),
        rationale=f"not a meal time ({request.state.time}): keep going",
        confidence=Confidence.MEDIUM,
    )


_RULES: dict[AdvisorQuestion, Callable[[AdvisorRequest], AdvisorResponse]] = {
    AdvisorQuestion.LATE_ARRIVAL: _late_arrival,
    AdvisorQuestion.GAP_FILL: _gap_fill,
    AdvisorQuestion.ACTIVITY_ORDER: _activity_order,
    AdvisorQuestion.ENERGY_CHECK: _energy_check,
    AdvisorQuestion.MEAL_DECISION: _meal_decision,
}


def apply_fallback_rules(request: AdvisorRequest) -> AdvisorResponse:
    response = _RULES[request.question](request)
    response.source = "fallback"
    return response


class FallbackAdvisor:
    """Pure-function advisor; always available."""

    def advise(self, request: AdvisorRequest) -> AdvisorResponse:
        return apply_fallback_rules(request)
