"""Shared fixtures for hub-updater tests."""

from __future__ import annotations

import os
from collections.abc import Iterator, Sequence
from pathlib import Path

import pytest

from hub_updater.config import Settings, get_settings
from hub_updater.runner import CommandResult, ErrorKind


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep HUB_UPDATER_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.upper().startswith("HUB_UPDATER_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Default settings with no health-poll delay and no .env loading."""
    return Settings(_env_file=None, health_interval_seconds=0)


@pytest.fixture
def deploy_dir(tmp_path: Path) -> Path:
    """A deployment directory holding a compose file that uses the registry image."""
    path = tmp_path / "deploy"
    path.mkdir()
    (path / "docker-compose.yaml").write_text(
        "services:\n"
        "  app:\n"
        "    image: ghcr.io/ding113/claude-code-hub:latest\n"
        "    restart: unless-stopped\n",
        encoding="utf-8",
    )
    return path


class ScriptedRunner:
    """Stands in for CommandRunner, answering git/docker commands from a script.

    ``health`` is consumed one value per ``docker inspect``; the last value
    repeats. ``container_ids`` works the same way for ``compose ps -q``
    (an empty string means the container is not up yet). ``fail_on`` is an
    argv prefix that should fail.
    """

    def __init__(
        self,
        health: Sequence[str] = ("healthy",),
        container_ids: Sequence[str] = ("c0ffee",),
        branch: str = "main",
        fail_on: Sequence[str] | None = None,
        compose_plugin: bool = True,
    ) -> None:
        self.calls: list[tuple[str, ...]] = []
        self._health = list(health)
        self._container_ids = list(container_ids)
        self._branch = branch
        self._fail_on = tuple(fail_on) if fail_on else None
        self._compose_plugin = compose_plugin

    def count(self, *prefix: str) -> int:
        return sum(1 for argv in self.calls if argv[: len(prefix)] == prefix)

    @staticmethod
    def _next(values: list[str]) -> str:
        return values.pop(0) if len(values) > 1 else values[0]

    async def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        capture: bool = True,
    ) -> CommandResult:
        argv = tuple(args)
        self.calls.append(argv)

        if self._fail_on and argv[: len(self._fail_on)] == self._fail_on:
            return CommandResult(
                args=argv, returncode=1, stderr="scripted failure", error_kind=ErrorKind.EXIT_STATUS
            )
        if argv == ("docker", "compose", "version") and not self._compose_plugin:
            return CommandResult(
                args=argv, returncode=1, stderr="unknown command", error_kind=ErrorKind.EXIT_STATUS
            )
        if argv[:3] == ("git", "rev-parse", "--abbrev-ref"):
            return CommandResult(args=argv, returncode=0, stdout=f"{self._branch}\n")
        if "ps" in argv and "-q" in argv:
            return CommandResult(args=argv, returncode=0, stdout=self._next(self._container_ids))
        if argv[:2] == ("docker", "inspect"):
            return CommandResult(args=argv, returncode=0, stdout=f"{self._next(self._health)}\n")
        return CommandResult(args=argv, returncode=0)


@pytest.fixture
def scripted_runner() -> type[ScriptedRunner]:
    return ScriptedRunner
