"""
Unit tests for BaseService timing and metrics.

Run with: pytest tests/test_base_service.py -v
"""

import logging

import pytest

from bandroadie_calendar import metrics
from bandroadie_calendar.base import BaseService


class ExampleService(BaseService):
    """Example service for metrics testing."""

    @BaseService.measure_operation("fast_operation")
    def fast_operation(self):
        return "success"

    @BaseService.measure_operation("failing_operation")
    def failing_operation(self):
        raise ValueError("This operation always fails")

    @BaseService.measure_operation("async_operation")
    async def async_operation(self, value):
        return value * 2

    def nested_operation(self):
        with self.measure_operation_context("outer"):
            with self.measure_operation_context("inner"):
                return "done"


class TestBaseServiceMetrics:
    @pytest.fixture(autouse=True)
    def clear_metrics(self):
        """Clear metrics before each test."""
        BaseService._class_metrics.clear()
        yield

    @pytest.fixture
    def service(self):
        return ExampleService()

    def test_decorator_metrics_collection(self, service):
        assert service.get_metrics() == {}

        for _ in range(3):
            assert service.fast_operation() == "success"

        data = service.get_metrics()["fast_operation"]
        assert data["count"] == 3
        assert data["success_rate"] == 1.0
        assert data["min_time"] <= data["avg_time"] <= data["max_time"]

    def test_failures_are_counted_and_reraised(self, service):
        with pytest.raises(ValueError):
            service.failing_operation()

        data = service.get_metrics()["failing_operation"]
        assert data["failure_count"] == 1
        assert data["success_rate"] == 0.0

    @pytest.mark.asyncio
    async def test_async_methods_are_measured(self, service):
        assert await service.async_operation(21) == 42

        assert service.get_metrics()["async_operation"]["count"] == 1

    def test_context_manager_records_each_block(self, service):
        assert service.nested_operation() == "done"

        assert set(service.get_metrics()) == {"outer", "inner"}

    def test_slow_operation_warning(self, service, caplog):
        service.slow_operation_seconds = 0.0
        caplog.set_level(logging.WARNING)

        service.fast_operation()

        assert "Slow operation detected: fast_operation" in caplog.text

    def test_reset_metrics(self, service):
        service.fast_operation()

        service.reset_metrics()

        assert service.get_metrics() == {}

    def test_metrics_are_kept_per_class(self, service):
        class OtherService(BaseService):
            pass

        service.fast_operation()

        assert OtherService().get_metrics() == {}

    def test_prometheus_counters_updated(self, service):
        labels = {"service": "ExampleService", "operation": "failing_operation"}
        before = metrics.REGISTRY.get_sample_value(
            "bandroadie_errors_total", {**labels, "error_type": "ValueError"}
        ) or 0.0

        with pytest.raises(ValueError):
            service.failing_operation()

        after = metrics.REGISTRY.get_sample_value(
            "bandroadie_errors_total", {**labels, "error_type": "ValueError"}
        )
        assert after == before + 1
        assert b"bandroadie_service_operations_total" in metrics.export()
