# Application Package
from .due_selector import DueSetSelector
from .mastery import MasteryEvaluator
from .review_service import ReviewService
from .scheduler import SM2Scheduler, validate_quality

__all__ = [
    "SM2Scheduler",
    "validate_quality",
    "MasteryEvaluator",
    "DueSetSelector",
    "ReviewService",
]
