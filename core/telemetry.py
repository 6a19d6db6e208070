"""PostHog telemetry for catalog requests.

Each request records how long its pipeline steps took (``fetch``,
``decode``, ``split``, ``persist``) and how many iTunes calls it made. The
router sends one ``catalog_<step>`` event per step and a closing
``catalog_request_completed`` event once the request is answered.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from posthog import Posthog

logger = logging.getLogger(__name__)

DISTINCT_ID = "itunes-catalog-proxy"
COMPLETED_EVENT = "catalog_request_completed"
TRACKED_SERVICES = ("itunes",)


def _elapsed_ms(since: float) -> float:
    return (time.perf_counter() - since) * 1000


@dataclass
class StepResult:
    """Timing and outcome of one pipeline step."""

    duration_ms: float
    success: bool = True
    error_type: str | None = None

    def as_properties(self) -> dict[str, Any]:
        return {
            "duration_ms": round(self.duration_ms, 2),
            "success": self.success,
            "error_type": self.error_type,
        }


@dataclass
class RequestTelemetry:
    """Step timings and upstream call counts for a single catalog request."""

    operation: str
    steps: dict[str, StepResult] = field(default_factory=dict)
    api_calls: dict[str, int] = field(
        default_factory=lambda: dict.fromkeys(TRACKED_SERVICES, 0)
    )
    start_time: float = field(default_factory=time.perf_counter)

    @contextmanager
    def track_step(self, step_name: str):
        """Time the enclosed block as ``step_name``, recording the exception type if it raises."""
        started = time.perf_counter()
        try:
            yield
        except Exception as e:
            self.steps[step_name] = StepResult(_elapsed_ms(started), False, type(e).__name__)
            raise
        self.steps[step_name] = StepResult(_elapsed_ms(started))

    def record_api_call(self, service: str) -> None:
        """Count one outbound call to ``service``."""
        if service not in self.api_calls:
            logger.warning(f"Unknown service for API call tracking: {service}")
            return
        self.api_calls[service] += 1

    def get_total_duration_ms(self) -> float:
        return _elapsed_ms(self.start_time)

    def get_step_timings(self) -> dict[str, float]:
        """Step durations keyed ``<step>_ms``."""
        return {f"{name}_ms": step.duration_ms for name, step in self.steps.items()}

    def failed_step(self) -> str | None:
        """Name of the step that raised, if any."""
        return next((name for name, step in self.steps.items() if not step.success), None)

    def send_to_posthog(
        self,
        posthog_client: Posthog,
        extra_properties: dict[str, Any] | None = None,
    ) -> None:
        """Capture one event per step, then the request summary.

        Args:
            posthog_client: PostHog client instance
            extra_properties: Request-level properties added to the summary event
        """
        for step_name, step_result in self.steps.items():
            posthog_client.capture(
                distinct_id=DISTINCT_ID,
                event=f"catalog_{step_name}",
                properties={
                    "operation": self.operation,
                    "step": step_name,
                    **step_result.as_properties(),
                },
            )

        total_ms = self.get_total_duration_ms()
        posthog_client.capture(
            distinct_id=DISTINCT_ID,
            event=COMPLETED_EVENT,
            properties={
                "operation": self.operation,
                "total_duration_ms": round(total_ms, 2),
                "steps": self.get_step_timings(),
                "failed_step": self.failed_step(),
                "api_calls": dict(self.api_calls),
                **(extra_properties or {}),
            },
        )
        logger.debug(f"Sent {self.operation} telemetry: {len(self.steps)} steps in {total_ms:.1f}ms")
