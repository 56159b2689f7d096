"""
EffectForge Engine - Performance Monitor v1.0

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

Metrics source for the status endpoints. Tracks request durations and
errors, samples process CPU and memory, raises threshold alerts and
classifies overall health. The generation pipeline never reads from it.
"""

import logging
import os
import sys
import threading
import time
from collections import deque
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from .adapters.base import RecordStore, KIND_EFFECT, KIND_METRICS
from .core.config import ForgeConfig
from .constitution import ENFORCEMENT_THRESHOLD

logger = logging.getLogger(__name__)


# Alert severities, mildest first
SEVERITY_MEDIUM = "medium"
SEVERITY_HIGH = "high"
SEVERITY_CRITICAL = "critical"

# Health states
HEALTHY = "healthy"
WARNING = "warning"
CRITICAL = "critical"


def _now() -> str:
    return datetime.utcnow().isoformat() + "Z"


def process_memory_mb() -> float:
    """Peak resident memory of this process in MB (0 where unavailable)."""
    if sys.platform == "win32":
        return 0.0
    import resource

    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # macOS reports bytes, Linux kilobytes
    if sys.platform == "darwin":
        return peak / (1024 * 1024)
    return peak / 1024


class PerformanceMonitor:
    """
    Rolling request metrics, threshold alerts and health classification.

    Thread-safe; one instance is shared by every request handler.

    Usage:
        monitor = PerformanceMonitor(config, store)
        monitor.track_request(42.0)
        monitor.track_request(910.0, error=True)
        monitor.get_health_status()["overall"]   # "critical"
    """

    def __init__(self, config: Optional[ForgeConfig] = None, store: Optional[RecordStore] = None):
        self.config = config or ForgeConfig()
        self.store = store
        self._lock = threading.RLock()
        self._timings = deque(maxlen=self.config.metrics_window)
        self._alerts: List[Dict[str, Any]] = []
        self.request_count = 0
        self.error_count = 0
        self.cpu_usage = 0.0
        self.memory_usage = 0.0
        self.started_at = time.time()
        self._last_sample = (time.time(), time.process_time())
        self._window_started = time.time()

    # =========================================================================
    # TRACKING
    # =========================================================================

    def track_request(self, duration_ms: float, error: bool = False) -> None:
        """Record one finished request."""
        with self._lock:
            self._timings.append(duration_ms)
            self.request_count += 1
            if error:
                self.error_count += 1
        self._check("response_time", duration_ms, self.config.response_thresholds,
                    "response time", "ms", warning_severity=SEVERITY_MEDIUM)
        if error:
            self._check("error_rate", self.error_rate, self.config.error_rate_thresholds,
                        "error rate", "%")

    def sample_process(self) -> None:
        """Update CPU and memory readings and check their thresholds."""
        now, cpu_time = time.time(), time.process_time()
        with self._lock:
            last_wall, last_cpu = self._last_sample
            self._last_sample = (now, cpu_time)
            wall = now - last_wall
            if wall > 0:
                cpus = os.cpu_count() or 1
                self.cpu_usage = min(100.0, (cpu_time - last_cpu) / wall / cpus * 100)
            self.memory_usage = process_memory_mb()
        self._check("cpu", self.cpu_usage, self.config.cpu_thresholds, "CPU usage", "%")
        self._check("memory", self.memory_usage, self.config.memory_thresholds, "memory usage", "MB")

    @property
    def average_response_time(self) -> float:
        with self._lock:
            if not self._timings:
                return 0.0
            return sum(self._timings) / len(self._timings)

    @property
    def error_rate(self) -> float:
        """Errors as a percentage of tracked requests."""
        with self._lock:
            if self.request_count == 0:
                return 0.0
            return self.error_count / self.request_count * 100

    def reset_counters(self) -> None:
        """Start a new request/error counting window."""
        with self._lock:
            self.request_count = 0
            self.error_count = 0
            self._window_started = time.time()

    # =========================================================================
    # ALERTS
    # =========================================================================

    def _check(self, alert_type: str, value: float, thresholds: List[float],
               label: str, unit: str, warning_severity: str = SEVERITY_HIGH) -> None:
        warning, critical = thresholds
        if value >= critical:
            self.create_alert(alert_type, SEVERITY_CRITICAL, f"Critical {label}: {value:.1f}{unit}")
        elif value >= warning:
            self.create_alert(alert_type, warning_severity, f"High {label}: {value:.1f}{unit}")

    def create_alert(self, alert_type: str, severity: str, message: str) -> Optional[Dict[str, Any]]:
        """
        Add an alert unless an unresolved one of the same type and severity exists.

        Returns:
            The new alert, or None if it was a duplicate
        """
        with self._lock:
            for alert in self._alerts:
                if alert["type"] == alert_type and alert["severity"] == severity and not alert["resolved"]:
                    return None

            alert = {
                "id": str(uuid4()),
                "type": alert_type,
                "severity": severity,
                "message": message,
                "timestamp": _now(),
                "resolved": False,
            }
            self._alerts.append(alert)
            if len(self._alerts) > self.config.max_alerts:
                self._alerts.pop(0)

        logger.warning(f"Performance alert [{severity.upper()}]: {message}")
        return dict(alert)

    def get_active_alerts(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(a) for a in self._alerts if not a["resolved"]]

    def resolve_alert(self, alert_id: str) -> bool:
        with self._lock:
            for alert in self._alerts:
                if alert["id"] == alert_id:
                    alert["resolved"] = True
                    return True
        return False

    # =========================================================================
    # STATUS
    # =========================================================================

    def service_statuses(self) -> Dict[str, str]:
        """Coarse per-component labels derived from the current readings."""
        response = self.average_response_time
        errors = self.error_rate

        if errors > 10:
            analyzer = "offline"
        elif response > 1000:
            analyzer = "degraded"
        else:
            analyzer = "online"

        if response > 500:
            render = "slow"
        elif errors > 5:
            render = "error"
        else:
            render = "active"

        if errors > 15:
            library = "unavailable"
        elif response > 200:
            library = "loading"
        else:
            library = "ready"

        if self.cpu_usage > 80:
            optimizer = "overloaded"
        elif self.cpu_usage > 60:
            optimizer = "normal"
        else:
            optimizer = "optimized"

        return {
            "analyzer": analyzer,
            "renderEngine": render,
            "effectLibrary": library,
            "optimizer": optimizer,
        }

    def library_stats(self) -> Dict[str, Any]:
        """Effect count, compliant count and mean score from the store."""
        if self.store is None:
            return {"totalEffects": 0, "compliantEffects": 0, "averageConstitutionScore": 0}

        effects = self.store.list(KIND_EFFECT)
        scores = [e.get("constitutionScore") or 0 for e in effects]
        return {
            "totalEffects": len(effects),
            "compliantEffects": sum(1 for s in scores if s >= ENFORCEMENT_THRESHOLD),
            "averageConstitutionScore": round(sum(scores) / len(scores)) if scores else 0,
        }

    def get_current_metrics(self, persist: bool = True) -> Dict[str, Any]:
        """
        Take a metrics snapshot.

        The snapshot is stored as a `metrics` record when a store is
        attached and `persist` is set.
        """
        self.sample_process()
        elapsed = max(time.time() - self._window_started, 1.0)

        metrics: Dict[str, Any] = {
            "cpuUsage": round(self.cpu_usage),
            "memoryUsage": round(self.memory_usage),
            "responseTime": round(self.average_response_time),
            "errorRate": round(self.error_rate, 2),
            "requestCount": self.request_count,
            "errorCount": self.error_count,
            "requestsPerSecond": round(self.request_count / elapsed, 2),
            "services": self.service_statuses(),
        }
        metrics.update(self.library_stats())

        if persist and self.store is not None:
            record = self.store.create(KIND_METRICS, metrics)
            self.prune_history()
            return record
        return metrics

    def prune_history(self) -> int:
        """Delete stored snapshots beyond `metrics_history`, oldest first."""
        if self.store is None:
            return 0
        stale = self.store.list(KIND_METRICS)[self.config.metrics_history:]
        for record in stale:
            self.store.delete(KIND_METRICS, record["id"])
        return len(stale)

    def get_history(self, limit: int = 24) -> List[Dict[str, Any]]:
        """Stored snapshots, newest first."""
        if self.store is None:
            return []
        return self.store.recent(KIND_METRICS, limit)

    def overall_health(self) -> str:
        """healthy, warning or critical."""
        active = self.get_active_alerts()
        if any(a["severity"] == SEVERITY_CRITICAL for a in active):
            return CRITICAL
        if sum(1 for a in active if a["severity"] == SEVERITY_HIGH) > 2:
            return WARNING

        readings = [
            (self.cpu_usage, self.config.cpu_thresholds),
            (self.memory_usage, self.config.memory_thresholds),
            (self.average_response_time, self.config.response_thresholds),
            (self.error_rate, self.config.error_rate_thresholds),
        ]
        if any(value > thresholds[1] for value, thresholds in readings):
            return CRITICAL
        if any(value > thresholds[0] for value, thresholds in readings):
            return WARNING
        return HEALTHY

    def get_health_status(self) -> Dict[str, Any]:
        return {
            "overall": self.overall_health(),
            "services": self.service_statuses(),
            "uptime": round(time.time() - self.started_at, 1),
            "lastCheck": _now(),
            "activeAlerts": len(self.get_active_alerts()),
        }


__all__ = [
    "PerformanceMonitor",
    "process_memory_mb",
    "HEALTHY",
    "WARNING",
    "CRITICAL",
]
