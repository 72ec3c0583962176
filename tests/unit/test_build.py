"""Tests for hub_updater.build — docker build invocation."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from hub_updater.build import build_image, build_image_args
from hub_updater.config import DeployConfig, Settings
from hub_updater.errors import CommandFailedError
from hub_updater.runner import CommandResult, ErrorKind


def _config(tmp_path: Path, **overrides) -> DeployConfig:
    return DeployConfig(deploy_dir=tmp_path / "deploy", source_dir=tmp_path / "src", **overrides)


class TestBuildImageArgs:
    def test_defaults(self, tmp_path: Path, settings: Settings) -> None:
        args = build_image_args(_config(tmp_path), settings, "0.3.14")

        assert args == [
            "docker",
            "build",
            "-f",
            "deploy/Dockerfile",
            "-t",
            "claude-code-hub:local",
            "--build-arg",
            "APP_VERSION=0.3.14",
            ".",
        ]

    def test_platform_forwarded_verbatim(self, tmp_path: Path, settings: Settings) -> None:
        args = build_image_args(_config(tmp_path, platform="linux/arm64"), settings, "dev")

        idx = args.index("--platform")
        assert args[idx + 1] == "linux/arm64"
        assert args[-1] == "."

    def test_no_cache(self, tmp_path: Path, settings: Settings) -> None:
        args = build_image_args(_config(tmp_path, no_cache=True), settings, "dev")
        assert "--no-cache" in args
        assert "--platform" not in args

    def test_context_is_last(self, tmp_path: Path, settings: Settings) -> None:
        config = _config(tmp_path, platform="linux/amd64", no_cache=True)
        assert build_image_args(config, settings, "dev")[-1] == "."


class TestBuildImage:
    async def test_runs_in_source_dir_with_build_timeout(
        self, tmp_path: Path, settings: Settings
    ) -> None:
        runner = AsyncMock()
        runner.run = AsyncMock(return_value=CommandResult(args=(), returncode=0))
        config = _config(tmp_path)

        await build_image(runner, config, settings, "dev")

        call = runner.run.await_args
        assert call.kwargs["cwd"] == config.source_dir
        assert call.kwargs["timeout"] == settings.build_timeout_seconds

    async def test_failure_raises(self, tmp_path: Path, settings: Settings) -> None:
        runner = AsyncMock()
        runner.run = AsyncMock(
            return_value=CommandResult(args=(), returncode=1, error_kind=ErrorKind.EXIT_STATUS)
        )

        with pytest.raises(CommandFailedError):
            await build_image(runner, _config(tmp_path), settings, "dev")
