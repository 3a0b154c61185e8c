"""Planner configuration."""

from tripweaver.config.settings import PlannerSettings, load_settings

__all__ = ["PlannerSettings", "load_settings"]
