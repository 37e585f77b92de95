"""Recreational league schedule, scores and standings package."""

__all__ = [
    "api",
    "config",
    "errors",
    "ingest",
    "models",
    "pipeline",
    "schedule",
    "standings",
    "storage",
]
