"""tripweaver: multi-day itinerary scheduling engine."""

__version__ = "0.1.0"
