"""Container health polling for a compose service.

Resolves the service's container id on every attempt, because the
container may not exist yet right after ``up -d``, then reads the health
status reported by the container runtime. Nothing here mutates the
running stack.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from hub_updater.compose import ComposeCommand
from hub_updater.logging import get_logger
from hub_updater.retry import RetryPolicy, poll_until
from hub_updater.runner import CommandRunner

log = get_logger("hub_updater.health")

HEALTH_FORMAT = "{{.State.Health.Status}}"


class HealthStatus(StrEnum):
    """Health reported by ``docker inspect``."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    STARTING = "starting"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str) -> HealthStatus:
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class HealthReport:
    """Outcome of waiting for a service to become healthy."""

    service: str
    healthy: bool
    attempts: int
    status: HealthStatus | None = None
    container_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "service": self.service,
            "healthy": self.healthy,
            "attempts": self.attempts,
            "status": str(self.status) if self.status else None,
            "container_id": self.container_id,
        }


@dataclass(frozen=True)
class _Observation:
    container_id: str | None
    status: HealthStatus | None


class HealthChecker:
    """Polls one compose service until it reports ``healthy`` or attempts run out."""

    def __init__(
        self,
        runner: CommandRunner,
        compose: ComposeCommand,
        deploy_dir: Path,
        service: str = "app",
        policy: RetryPolicy | None = None,
    ) -> None:
        self._runner = runner
        self._compose = compose
        self._deploy_dir = deploy_dir
        self._service = service
        self._policy = policy or RetryPolicy(max_attempts=12, interval_seconds=5)

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def resolve_container(self) -> str | None:
        """Return the service's container id, or None if it is not running yet."""
        result = await self._runner.run(
            self._compose("ps", "-q", self._service),
            cwd=self._deploy_dir,
        )
        if not result.ok:
            return None
        ids = result.stdout.split()
        return ids[0] if ids else None

    async def query_status(self, container_id: str) -> HealthStatus:
        """Read the container's health; any failure to read it is ``unknown``."""
        result = await self._runner.run(
            ["docker", "inspect", f"--format={HEALTH_FORMAT}", container_id],
        )
        if not result.ok:
            return HealthStatus.UNKNOWN
        return HealthStatus.parse(result.stdout)

    async def wait_until_healthy(self) -> HealthReport:
        max_attempts = self._policy.max_attempts
        log.info(
            "health_wait_started",
            service=self._service,
            max_attempts=max_attempts,
            budget_seconds=self._policy.budget_seconds,
        )

        async def probe(attempt: int) -> _Observation:
            container_id = await self.resolve_container()
            if container_id is None:
                log.warning("app_container_not_found", service=self._service, attempt=attempt)
                return _Observation(container_id=None, status=None)

            status = await self.query_status(container_id)
            log.info(
                "health_status",
                service=self._service,
                status=str(status),
                attempt=f"{attempt}/{max_attempts}",
            )
            return _Observation(container_id=container_id, status=status)

        outcome = await poll_until(
            probe,
            lambda obs: obs.status is HealthStatus.HEALTHY,
            self._policy,
        )
        last = outcome.value or _Observation(container_id=None, status=None)

        if outcome.succeeded:
            log.info("service_healthy", service=self._service, attempts=outcome.attempts)
        else:
            log.warning(
                "service_not_healthy",
                service=self._service,
                budget_seconds=self._policy.budget_seconds,
                last_status=str(last.status) if last.status else None,
            )

        return HealthReport(
            service=self._service,
            healthy=outcome.succeeded,
            attempts=outcome.attempts,
            status=last.status,
            container_id=last.container_id,
        )
