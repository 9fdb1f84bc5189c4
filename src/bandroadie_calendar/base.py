"""
Base service pattern for the calendar core.

Provides common functionality for service classes:
- Logging
- Operation timing with slow-operation warnings
- In-process and Prometheus metrics
"""

import asyncio
from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Dict, Iterator, TypeVar, cast

from . import metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

DEFAULT_SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """
    Base class for service layer components.

    Provides common patterns for:
    - Logging
    - Performance monitoring
    """

    # Class-level metrics storage
    _class_metrics: Dict[str, Dict[str, Dict[str, Any]]] = {}

    slow_operation_seconds: float = DEFAULT_SLOW_OPERATION_SECONDS

    def __init__(self) -> None:
        self.logger = logging.getLogger(self.__class__.__name__)

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("load_events")
            async def load_events(self):
                ...

        Works for both sync and async methods.
        """

        def decorator(func: F) -> F:
            if asyncio.iscoroutinefunction(func):

                @wraps(func)
                async def async_wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                    start_time = time.perf_counter()
                    error_type = None
                    try:
                        return await func(self, *args, **kwargs)
                    except Exception as e:
                        error_type = type(e).__name__
                        raise
                    finally:
                        self._finish_operation(
                            operation_name, time.perf_counter() - start_time, error_type
                        )

                return cast(F, async_wrapper)

            @wraps(func)
            def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                start_time = time.perf_counter()
                error_type = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    self._finish_operation(
                        operation_name, time.perf_counter() - start_time, error_type
                    )

            return cast(F, wrapper)

        return decorator

    @contextmanager
    def measure_operation_context(self, operation_name: str) -> Iterator[None]:
        """
        Context manager to measure a block of work.

        Usage:
            with self.measure_operation_context("aggregate"):
                ...
        """
        start_time = time.perf_counter()
        error_type = None
        try:
            yield
        except Exception as e:
            error_type = type(e).__name__
            raise
        finally:
            self._finish_operation(operation_name, time.perf_counter() - start_time, error_type)

    def _finish_operation(self, operation: str, elapsed: float, error_type: str | None) -> None:
        success = error_type is None
        self._record_metric(operation, elapsed, success)

        if elapsed > self.slow_operation_seconds:
            self.logger.warning(f"Slow operation detected: {operation} took {elapsed:.2f}s")

        try:
            metrics.record_service_operation(
                service=self.__class__.__name__,
                operation=operation,
                duration=elapsed,
                status="success" if success else "error",
                error_type=error_type,
            )
        except Exception as e:
            # Metrics collection never breaks the operation
            logger.debug(f"Failed to record metrics for {operation}: {e}")

    def _record_metric(self, operation: str, elapsed: float, success: bool) -> None:
        class_name = self.__class__.__name__
        metrics_for_class = BaseService._class_metrics.setdefault(class_name, {})
        metric_data = metrics_for_class.setdefault(
            operation,
            {
                "count": 0,
                "total_time": 0.0,
                "success_count": 0,
                "failure_count": 0,
                "min_time": float("inf"),
                "max_time": 0.0,
            },
        )
        metric_data["count"] += 1
        metric_data["total_time"] += elapsed
        metric_data["min_time"] = min(metric_data["min_time"], elapsed)
        metric_data["max_time"] = max(metric_data["max_time"], elapsed)
        if success:
            metric_data["success_count"] += 1
        else:
            metric_data["failure_count"] += 1

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get performance metrics for this service.

        Returns:
            Dictionary with metrics for each measured operation
        """
        result: Dict[str, Any] = {}
        for operation, data in BaseService._class_metrics.get(
            self.__class__.__name__, {}
        ).items():
            count = data["count"]
            if count == 0:
                continue
            result[operation] = {
                "count": count,
                "avg_time": data["total_time"] / count,
                "min_time": data["min_time"],
                "max_time": data["max_time"],
                "total_time": data["total_time"],
                "success_rate": data["success_count"] / count,
                "success_count": data["success_count"],
                "failure_count": data["failure_count"],
            }
        return result

    def reset_metrics(self) -> None:
        """Reset all metrics for this service."""
        class_name = self.__class__.__name__
        if class_name in BaseService._class_metrics:
            BaseService._class_metrics[class_name].clear()
        self.logger.info(f"Metrics reset for {class_name}")
