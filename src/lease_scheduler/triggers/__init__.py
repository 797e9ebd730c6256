from .base import TriggerEngine, FiringCallback
from .cron import CronTriggerEngine

__all__ = ["TriggerEngine", "FiringCallback", "CronTriggerEngine"]
