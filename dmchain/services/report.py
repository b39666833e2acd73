import threading

from dmchain.models.report import Report


class ReportLedger:
    """Moderation reports keyed by message id.

    Written by MessageStore.report(), which enforces that a message is
    reported at most once.
    """

    def __init__(self, lock: threading.RLock) -> None:
        self._lock = lock
        self._reports: dict[int, list[Report]] = {}

    def record(self, report: Report) -> None:
        with self._lock:
            self._reports.setdefault(report.message_id, []).append(report)

    def reports_for(self, message_id: int) -> list[Report]:
        with self._lock:
            return list(self._reports.get(message_id, []))
