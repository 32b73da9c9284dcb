"""Queue engine services và adapter."""
from autoblog.services.queue_processor import AttemptOutcome, CycleReport, QueueProcessor

__all__ = [
    "AttemptOutcome",
    "CycleReport",
    "QueueProcessor",
]
