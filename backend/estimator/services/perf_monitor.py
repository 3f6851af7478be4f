"""Performance counters for estimate calculation and document export."""
import logging
import threading
from typing import Any, Dict

logger = logging.getLogger("estimator-api.perf")


class PerformanceTracker:
    """
    Thread-safe in-memory tracker for request-level metrics.

    Tracks:
    - Estimates calculated
    - Documents exported, cumulative and average export duration
    - Export failures
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._estimates_calculated: int = 0
        self._exports_written: int = 0
        self._total_export_duration_ms: float = 0.0
        self._export_errors: int = 0

    # ------------------------------------------------------------------
    # Public write API
    # ------------------------------------------------------------------

    def record_estimate(self) -> None:
        with self._lock:
            self._estimates_calculated += 1

    def record_export(self, duration_ms: float) -> None:
        """Call once per workbook written successfully."""
        with self._lock:
            self._exports_written += 1
            self._total_export_duration_ms += duration_ms

    def record_export_error(self) -> None:
        with self._lock:
            self._export_errors += 1

    # ------------------------------------------------------------------
    # Public read API
    # ------------------------------------------------------------------

    def get_metrics(self) -> Dict[str, Any]:
        """
        Return a snapshot of all collected metrics.

        Returns
        -------
        dict with keys:
            estimates_calculated   : int
            exports_written        : int
            export_errors          : int
            avg_export_duration_ms : float  (0 if none written)
        """
        with self._lock:
            avg = (
                round(self._total_export_duration_ms / self._exports_written, 2)
                if self._exports_written > 0
                else 0.0
            )
            return {
                "estimates_calculated": self._estimates_calculated,
                "exports_written": self._exports_written,
                "export_errors": self._export_errors,
                "avg_export_duration_ms": avg,
            }

    def reset(self) -> None:
        """Reset all counters (useful in tests)."""
        with self._lock:
            self._estimates_calculated = 0
            self._exports_written = 0
            self._total_export_duration_ms = 0.0
            self._export_errors = 0


# Module-level singleton; import this instance everywhere else.
tracker = PerformanceTracker()
