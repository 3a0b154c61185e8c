"""Ambiguous-decision advisor: oracle-backed with deterministic fallback rules."""

from tripweaver.advisor.fallback_rules import FallbackAdvisor, apply_fallback_rules
from tripweaver.advisor.interfaces import Advisor
from tripweaver.advisor.oracle import OracleAdvisor
from tripweaver.advisor.selector import DecisionAdvisor, build_decision_advisor

__all__ = [
    "Advisor",
    "DecisionAdvisor",
    "FallbackAdvisor",
    "OracleAdvisor",
    "apply_fallback_rules",
    "build_decision_advisor",
]
