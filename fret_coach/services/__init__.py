from .practice_service import PracticeService
from .tuner_service import TunerService

__all__ = ["TunerService", "PracticeService"]
