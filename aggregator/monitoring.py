"""Failure tracking per source."""

import logging
from typing import Dict, Optional

from aggregator import config

log = logging.getLogger("ainews.monitoring")


class HealthMonitor:
    """Tracks consecutive fetch failures per source and flags persistent ones."""

    def __init__(self, alert_threshold: int = config.FAILURE_ALERT_THRESHOLD):
        self.alert_threshold = alert_threshold
        self._consecutive_failures: Dict[str, int] = {}
        self._alerted: Dict[str, bool] = {}
        self._last_error: Dict[str, str] = {}

    def record_success(self, source_id: str) -> None:
        prev = self._consecutive_failures.get(source_id, 0)
        if prev > 0:
            log.info("%s: recovered after %d consecutive failure(s).", source_id, prev)
        self._consecutive_failures[source_id] = 0
        self._alerted[source_id] = False
        self._last_error.pop(source_id, None)

    def record_failure(self, source_id: str, reason: str = "") -> bool:
        """Record a failure. Returns True if the alert threshold was just crossed."""
        count = self._consecutive_failures.get(source_id, 0) + 1
        self._consecutive_failures[source_id] = count
        if reason:
            self._last_error[source_id] = reason

        if count >= self.alert_threshold and not self._alerted.get(source_id, False):
            self._alerted[source_id] = True
            log.error("ALERT: source %s failed %d times in a row (%s).", source_id, count, reason or "?")
            return True
        return False

    def get_failures(self, source_id: str) -> int:
        return self._consecutive_failures.get(source_id, 0)

    def last_error(self, source_id: str) -> Optional[str]:
        return self._last_error.get(source_id)

    def get_status(self) -> Dict[str, int]:
        return dict(self._consecutive_failures)
