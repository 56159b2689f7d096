"""
EffectForge Monitor Tests

Tests request tracking, alerts and health classification.

Run with: pytest tests/test_monitor.py -v
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from forge_engine.adapters import MemoryStore, KIND_EFFECT, KIND_METRICS
from forge_engine.core.config import ForgeConfig
from forge_engine.monitor import PerformanceMonitor, HEALTHY, WARNING, CRITICAL


def quiet_config(**overrides):
    """Config whose process thresholds a test run never reaches."""
    values = dict(cpu_thresholds=[1000.0, 2000.0], memory_thresholds=[1e9, 2e9])
    values.update(overrides)
    return ForgeConfig(**values)


@pytest.fixture
def monitor():
    return PerformanceMonitor(quiet_config())


# =============================================================================
# TRACKING
# =============================================================================

class TestTracking:

    def test_fresh_monitor_is_healthy(self, monitor):
        assert monitor.average_response_time == 0.0
        assert monitor.error_rate == 0.0
        assert monitor.overall_health() == HEALTHY

    def test_average_and_error_rate(self, monitor):
        for duration in (10, 20, 30):
            monitor.track_request(duration)
        monitor.track_request(40, error=True)

        assert monitor.average_response_time == 25.0
        assert monitor.error_rate == 25.0

    def test_window_is_bounded(self):
        monitor = PerformanceMonitor(quiet_config(metrics_window=2))
        for duration in (100, 10, 20):
            monitor.track_request(duration)
        assert monitor.average_response_time == 15.0

    def test_reset_counters(self, monitor):
        monitor.track_request(10, error=True)
        monitor.reset_counters()
        assert monitor.request_count == 0
        assert monitor.error_rate == 0.0

    def test_sample_process(self, monitor):
        monitor.sample_process()
        assert 0.0 <= monitor.cpu_usage <= 100.0
        assert monitor.memory_usage >= 0.0


# =============================================================================
# ALERTS
# =============================================================================

class TestAlerts:

    def test_slow_request_raises_medium_alert(self, monitor):
        monitor.track_request(300)
        alerts = monitor.get_active_alerts()

        assert len(alerts) == 1
        assert alerts[0]["type"] == "response_time"
        assert alerts[0]["severity"] == "medium"

    def test_alerts_are_deduplicated(self, monitor):
        monitor.track_request(300)
        monitor.track_request(350)
        assert len(monitor.get_active_alerts()) == 1

    def test_critical_response(self, monitor):
        monitor.track_request(900)
        assert monitor.get_active_alerts()[0]["severity"] == "critical"

    def test_error_rate_alert(self, monitor):
        monitor.track_request(10, error=True)
        types = {a["type"] for a in monitor.get_active_alerts()}
        assert "error_rate" in types

    def test_resolve(self, monitor):
        monitor.track_request(300)
        alert_id = monitor.get_active_alerts()[0]["id"]

        assert monitor.resolve_alert(alert_id) is True
        assert monitor.get_active_alerts() == []
        assert monitor.resolve_alert("missing") is False

        monitor.track_request(300)
        assert len(monitor.get_active_alerts()) == 1

    def test_alert_cap(self):
        monitor = PerformanceMonitor(quiet_config(max_alerts=3))
        for i in range(5):
            monitor.create_alert(f"type-{i}", "high", "x")
        alerts = monitor.get_active_alerts()
        assert [a["type"] for a in alerts] == ["type-2", "type-3", "type-4"]


# =============================================================================
# HEALTH
# =============================================================================

class TestHealth:

    def test_warning_from_readings(self, monitor):
        monitor.track_request(300)
        assert monitor.overall_health() == WARNING

    def test_critical_alert_wins(self, monitor):
        monitor.track_request(900)
        assert monitor.overall_health() == CRITICAL

    def test_many_high_alerts(self, monitor):
        for alert_type in ("a", "b", "c"):
            monitor.create_alert(alert_type, "high", "x")
        assert monitor.overall_health() == WARNING

    def test_service_statuses(self, monitor):
        assert monitor.service_statuses() == {
            "analyzer": "online",
            "renderEngine": "active",
            "effectLibrary": "ready",
            "optimizer": "optimized",
        }

    def test_degraded_services(self, monitor):
        monitor.track_request(1200, error=True)
        statuses = monitor.service_statuses()
        assert statuses["analyzer"] == "offline"
        assert statuses["renderEngine"] == "slow"
        assert statuses["effectLibrary"] == "unavailable"

    def test_health_status_shape(self, monitor):
        status = monitor.get_health_status()
        assert set(status) == {"overall", "services", "uptime", "lastCheck", "activeAlerts"}
        assert status["activeAlerts"] == 0


# =============================================================================
# METRICS
# =============================================================================

class TestMetrics:

    def test_library_stats(self):
        store = MemoryStore()
        store.create(KIND_EFFECT, {"constitutionScore": 95})
        store.create(KIND_EFFECT, {"constitutionScore": 80})
        monitor = PerformanceMonitor(quiet_config(), store)

        assert monitor.library_stats() == {
            "totalEffects": 2,
            "compliantEffects": 1,
            "averageConstitutionScore": 88,
        }

    def test_snapshot_is_persisted(self):
        store = MemoryStore()
        monitor = PerformanceMonitor(quiet_config(), store)
        monitor.track_request(50)

        first = monitor.get_current_metrics()
        second = monitor.get_current_metrics()

        assert first["responseTime"] == 50
        assert first["requestCount"] == 1
        assert "services" in first
        assert [m["id"] for m in monitor.get_history()] == [second["id"], first["id"]]

    def test_stored_history_is_capped(self):
        store = MemoryStore()
        monitor = PerformanceMonitor(quiet_config(metrics_history=3), store)

        snapshots = [monitor.get_current_metrics() for _ in range(5)]

        assert store.count(KIND_METRICS) == 3
        assert [m["id"] for m in monitor.get_history()] == [s["id"] for s in reversed(snapshots[2:])]

    def test_snapshot_without_store(self, monitor):
        metrics = monitor.get_current_metrics()
        assert "id" not in metrics
        assert metrics["totalEffects"] == 0
        assert monitor.get_history() == []
