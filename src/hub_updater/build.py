"""Local image build."""

from __future__ import annotations

from hub_updater.config import DeployConfig, Settings
from hub_updater.logging import get_logger
from hub_updater.runner import CommandResult, CommandRunner

log = get_logger("hub_updater.build")


def build_image_args(config: DeployConfig, settings: Settings, app_version: str) -> list[str]:
    """Assemble the ``docker build`` argv for the source checkout."""
    args = [
        "docker",
        "build",
        "-f",
        settings.dockerfile,
        "-t",
        settings.image_tag,
        "--build-arg",
        f"APP_VERSION={app_version}",
    ]
    if config.platform:
        args += ["--platform", config.platform]
    if config.no_cache:
        args.append("--no-cache")
    args.append(".")
    return args


async def build_image(
    runner: CommandRunner,
    config: DeployConfig,
    settings: Settings,
    app_version: str,
) -> CommandResult:
    """Build the local image. Fails fast."""
    log.info(
        "docker_build_started",
        image=settings.image_tag,
        app_version=app_version,
        platform=config.platform,
        no_cache=config.no_cache,
    )
    result = await runner.run(
        build_image_args(config, settings, app_version),
        cwd=config.source_dir,
        timeout=settings.build_timeout_seconds,
        capture=False,
    )
    result.check()
    log.info("docker_build_complete", image=settings.image_tag, duration=result.duration_seconds)
    return result
