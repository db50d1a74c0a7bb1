"""Built-in section processors."""

from plandoc.processors.priority_drivers_processor import PriorityDriversProcessor
from plandoc.processors.status_processor import StatusProcessor

BUILTIN_PROCESSORS = (
    StatusProcessor(),
    PriorityDriversProcessor(),
)

__all__ = [
    "BUILTIN_PROCESSORS",
    "PriorityDriversProcessor",
    "StatusProcessor",
]
