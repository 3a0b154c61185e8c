"""Application orchestration layer."""

from tripweaver.application.contracts import PlanRequest
from tripweaver.application.plan_trip import plan_trip

__all__ = ["PlanRequest", "plan_trip"]
