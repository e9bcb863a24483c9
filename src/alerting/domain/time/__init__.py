from src.alerting.domain.time.duration import Duration
from src.alerting.domain.time.unit import TimeUnit

__all__ = ["Duration", "TimeUnit"]
