"""EU AI Act readiness backend."""

__version__ = "1.0.0"
