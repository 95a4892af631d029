from .locks import KeyedLocks
from .retry import call_upstream, compute_backoff, schedule_retry

__all__ = ["KeyedLocks", "call_upstream", "compute_backoff", "schedule_retry"]
