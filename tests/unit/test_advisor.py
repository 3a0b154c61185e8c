"""Decision advisor tests: fallback rules, cache, oracle budget and reply parsing."""

import pytest
from helpers import quiet_logger

from tripweaver.advisor.fallback_rules import apply_fallback_rules
from tripweaver.advisor.oracle import OracleAdvisor, parse_response
from tripweaver.advisor.selector import DecisionAdvisor, build_decision_advisor, clock_bucket
from tripweaver.config.settings import PlannerSettings
from tripweaver.domain.enums import AdvisorQuestion, EnergyLevel
from tripweaver.domain.exceptions import AdvisorError
from tripweaver.domain.models import (
    AdvisorOption,
    AdvisorRequest,
    AdvisorResponse,
    TravelerStateSummary,
)


def _request(question, options, *, time="14:00", hours=3.0, energy=EnergyLevel.FRESH):
    return AdvisorRequest(
        question=question,
        state=TravelerStateSummary(time=time, available_hours=hours, energy=energy),
        options=options,
    )


LATE_OPTIONS = [
    AdvisorOption(id="hotel", label="Go straight to the hotel", duration_minutes=30),
    AdvisorOption(id="dinner", label="Late dinner", duration_minutes=60),
]


class ScriptedOracle:
    def __init__(self, chosen_id="dinner", fail=False):
        self.chosen_id = chosen_id
        self.fail = fail
        self.requests = []

    def advise(self, request):
        self.requests.append(request)
        if self.fail:
            raise AdvisorError("boom")
        return AdvisorResponse(chosen_id=self.chosen_id, source="oracle")


def test_late_arrival_under_an_hour_goes_to_hotel():
    response = apply_fallback_rules(_request(AdvisorQuestion.LATE_ARRIVAL, LATE_OPTIONS, time="23:10", hours=0.5))
    assert response.chosen_id == "hotel"
    assert response.source == "fallback"


def test_gap_fill_picks_closest_duration():
    options = [
        AdvisorOption(id="a", label="A", duration_minutes=40),
        AdvisorOption(id="b", label="B", duration_minutes=70),
        AdvisorOption(id="c", label="C", duration_minutes=100),
    ]
    response = apply_fallback_rules(_request(AdvisorQuestion.GAP_FILL, options, hours=75 / 60))
    assert response.chosen_id == "b"


def test_exhausted_traveller_ends_the_day():
    options = [
        AdvisorOption(id="continue", label="Keep sightseeing"),
        AdvisorOption(id="end", label="End the day"),
    ]
    tired = apply_fallback_rules(_request(AdvisorQuestion.ENERGY_CHECK, options, energy=EnergyLevel.EXHAUSTED))
    fresh = apply_fallback_rules(_request(AdvisorQuestion.ENERGY_CHECK, options, energy=EnergyLevel.FRESH))
    assert tired.chosen_id == "end"
    assert fresh.chosen_id == "continue"


def test_activity_order_keeps_ranking():
    options = [AdvisorOption(id="x", label="X"), AdvisorOption(id="y", label="Y")]
    assert apply_fallback_rules(_request(AdvisorQuestion.ACTIVITY_ORDER, options)).chosen_id == "x"


MEAL_OPTIONS = [
    AdvisorOption(id="lunch", label="Eat lunch now", duration_minutes=75),
    AdvisorOption(id="wait", label="Keep sightseeing and eat later"),
]


@pytest.mark.parametrize("clock,expected", [("12:15", "lunch"), ("10:30", "wait"), ("19:40", "lunch")])
def test_meal_decision_eats_only_at_meal_time(clock, expected):
    response = apply_fallback_rules(_request(AdvisorQuestion.MEAL_DECISION, MEAL_OPTIONS, time=clock))
    assert response.chosen_id == expected


@pytest.mark.parametrize("clock,bucket", [("08:00", "morning"), ("13:59", "afternoon"), ("20:30", "evening"), ("23:00", "night")])
def test_clock_bucket(clock, bucket):
    assert clock_bucket(clock) == bucket


def test_oracle_answer_is_cached_per_bucket():
    oracle = ScriptedOracle("dinner")
    advisor = DecisionAdvisor(oracle, max_calls=5, logger=quiet_logger())

    first = advisor.advise(_request(AdvisorQuestion.LATE_ARRIVAL, LATE_OPTIONS, time="22:10"))
    second = advisor.advise(_request(AdvisorQuestion.LATE_ARRIVAL, LATE_OPTIONS, time="23:40"))

    assert first.source == "oracle"
    assert second.source == "cache"
    assert second.chosen_id == "dinner"
    assert advisor.calls == 1
    assert advisor.cache_hits == 1
    assert len(oracle.requests) == 1


def test_call_cap_falls_back_to_rules():
    oracle = ScriptedOracle("dinner")
    advisor = DecisionAdvisor(oracle, max_calls=1, logger=quiet_logger())

    advisor.advise(_request(AdvisorQuestion.LATE_ARRIVAL, LATE_OPTIONS, time="22:10"))
    capped = advisor.advise(
        _request(AdvisorQuestion.LATE_ARRIVAL, LATE_OPTIONS, time="09:00", hours=0.5, energy=EnergyLevel.TIRED)
    )

    assert capped.source == "fallback"
    assert capped.chosen_id == "hotel"
    assert advisor.calls == 1


def test_oracle_failure_is_never_fatal():
    advisor = DecisionAdvisor(ScriptedOracle(fail=True), logger=quiet_logger())
    response = advisor.advise(_request(AdvisorQuestion.LATE_ARRIVAL, LATE_OPTIONS, hours=0.5))
    assert response.source == "fallback"
    assert response.chosen_id == "hotel"


def test_without_keys_only_rules_are_wired():
    advisor = build_decision_advisor(PlannerSettings(), quiet_logger())
    assert not advisor.oracle_configured


def test_parse_response_extracts_json_and_validates_choice():
    reply = 'Sure! {"chosen_id": "hotel", "rationale": "tired", "confidence": "HIGH"}'
    parsed = parse_response(reply, LATE_OPTIONS)
    assert parsed.chosen_id == "hotel"
    assert parsed.confidence.value == "high"
    assert parsed.source == "oracle"

    with pytest.raises(AdvisorError):
        parse_response('{"chosen_id": "museum"}', LATE_OPTIONS)
    with pytest.raises(AdvisorError):
        parse_response("no idea", LATE_OPTIONS)


def test_oracle_advisor_wraps_client_errors():
    class BrokenClient:
        def invoke(self, prompt):
            raise RuntimeError("connection reset")

    with pytest.raises(AdvisorError):
        OracleAdvisor(BrokenClient(), timeout_seconds=1).advise(_request(AdvisorQuestion.LATE_ARRIVAL, LATE_OPTIONS))


def test_oracle_advisor_round_trip():
    class Reply:
        content = '{"chosen_id": "dinner", "rationale": "hungry"}'

    class Client:
        def invoke(self, prompt):
            assert "Late dinner" in prompt
            return Reply()

    response = OracleAdvisor(Client()).advise(_request(AdvisorQuestion.LATE_ARRIVAL, LATE_OPTIONS))
    assert response.chosen_id == "dinner"
