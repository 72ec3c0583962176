"""Update pipeline for a local Claude Code Hub deployment.

Lifecycle:
1. Validate the deployment directory (nothing is touched if this fails)
2. Pull the source checkout (unless skipped)
3. Build the local image
4. Point the compose file at the local image (backing it up once)
5. Restart the compose stack
6. Wait for the app service to report healthy

Steps 1-5 fail fast: the first failure raises and nothing is rolled back.
An unhealthy app after step 6 is reported in the result, not raised.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

from hub_updater.build import build_image
from hub_updater.compose import (
    ComposeCommand,
    ComposeFileUpdate,
    detect_compose,
    restart_services,
    update_compose_file,
)
from hub_updater.config import DeployConfig, Settings
from hub_updater.errors import PreconditionError
from hub_updater.health import HealthChecker, HealthReport
from hub_updater.logging import get_logger
from hub_updater.retry import RetryPolicy
from hub_updater.runner import CommandRunner
from hub_updater.source import pull_latest, read_app_version

log = get_logger("hub_updater.pipeline")


class DeployStatus(StrEnum):
    """Final state of a completed run."""

    SUCCESS = "success"
    UNHEALTHY = "unhealthy"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class DeployResult:
    """Result of a completed update run."""

    status: DeployStatus
    deploy_dir: Path
    image_tag: str
    app_version: str
    branch: str | None = None
    compose_update: ComposeFileUpdate | None = None
    health: HealthReport | None = None
    steps_completed: list[str] = field(default_factory=list)
    started_at: str = field(default_factory=_now_iso)
    completed_at: str | None = None
    duration_seconds: float = 0.0

    @property
    def healthy(self) -> bool:
        return self.status is DeployStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": str(self.status),
            "deploy_dir": str(self.deploy_dir),
            "image_tag": self.image_tag,
            "app_version": self.app_version,
            "branch": self.branch,
            "backup_created": self.compose_update.backup_created if self.compose_update else None,
            "health": self.health.to_dict() if self.health else None,
            "steps_completed": self.steps_completed,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "duration_seconds": self.duration_seconds,
        }


class DeployPipeline:
    """Runs one update of a deployment directory from a source checkout."""

    def __init__(
        self,
        config: DeployConfig,
        settings: Settings,
        runner: CommandRunner | None = None,
    ) -> None:
        self._config = config
        self._settings = settings
        self._runner = runner or CommandRunner(timeout=settings.command_timeout_seconds)
        self._compose: ComposeCommand | None = None

    @property
    def compose(self) -> ComposeCommand:
        """Compose command in use; the plugin form until detection has run."""
        return self._compose or ComposeCommand()

    def check_deploy_dir(self) -> Path:
        """Ensure the deployment directory holds a compose file; return its path."""
        deploy_dir = self._config.deploy_dir
        if not deploy_dir.is_dir():
            raise PreconditionError(f"Deployment directory does not exist: {deploy_dir}")

        compose_file = self._config.compose_file(self._settings)
        if not compose_file.is_file():
            raise PreconditionError(
                f"{self._settings.compose_filename} not found in: {deploy_dir}"
            )

        log.info("deploy_dir_found", deploy_dir=str(deploy_dir))
        return compose_file

    async def run(self) -> DeployResult:
        start = time.monotonic()
        started_at = _now_iso()
        config = self._config
        settings = self._settings
        steps: list[str] = []

        compose_file = self.check_deploy_dir()
        steps.append("check_deploy_dir")

        branch: str | None = None
        if config.skip_pull:
            log.info("git_pull_skipped", reason="--skip-pull flag set")
        else:
            branch = await pull_latest(
                self._runner, config.source_dir, timeout=settings.command_timeout_seconds
            )
            steps.append("git_pull")

        app_version = read_app_version(
            config.source_dir, settings.version_file, settings.default_version
        )
        log.info("app_version", version=app_version)

        await build_image(self._runner, config, settings, app_version)
        steps.append("docker_build")

        compose_update = update_compose_file(
            compose_file, settings.registry_image, settings.image_tag
        )
        steps.append("compose_update")

        self._compose = await detect_compose(self._runner)
        await restart_services(self._runner, self._compose, config.deploy_dir)
        steps.append("restart")

        checker = HealthChecker(
            self._runner,
            self._compose,
            config.deploy_dir,
            service=settings.app_service,
            policy=RetryPolicy(
                max_attempts=settings.health_max_attempts,
                interval_seconds=settings.health_interval_seconds,
            ),
        )
        health = await checker.wait_until_healthy()
        steps.append("health_check")

        result = DeployResult(
            status=DeployStatus.SUCCESS if health.healthy else DeployStatus.UNHEALTHY,
            deploy_dir=config.deploy_dir,
            image_tag=settings.image_tag,
            app_version=app_version,
            branch=branch,
            compose_update=compose_update,
            health=health,
            steps_completed=steps,
            started_at=started_at,
        )
        result.completed_at = _now_iso()
        result.duration_seconds = round(time.monotonic() - start, 2)

        if result.healthy:
            log.info("update_complete", deploy_dir=str(config.deploy_dir))
        else:
            log.warning(
                "update_complete_unhealthy",
                deploy_dir=str(config.deploy_dir),
                logs_hint=self.logs_hint(),
            )
        return result

    def logs_hint(self) -> str:
        service = self._settings.app_service
        return f"cd {self._config.deploy_dir} && {self.compose.display} logs -f {service}"
