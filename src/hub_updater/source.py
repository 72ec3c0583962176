"""Source checkout: pulling the latest code and reading its version marker."""

from __future__ import annotations

from pathlib import Path

from hub_updater.errors import PreconditionError
from hub_updater.logging import get_logger
from hub_updater.runner import CommandRunner

log = get_logger("hub_updater.source")


def read_app_version(source_dir: Path, version_file: str = "VERSION", default: str = "dev") -> str:
    """Return the version recorded in the checkout, or ``default`` if there is none."""
    path = source_dir / version_file
    if not path.is_file():
        return default
    version = path.read_text(encoding="utf-8").strip()
    return version or default


async def current_branch(runner: CommandRunner, repo_dir: Path) -> str:
    result = (await runner.run(["git", "rev-parse", "--abbrev-ref", "HEAD"], cwd=repo_dir)).check()
    return result.stdout.strip()


async def pull_latest(runner: CommandRunner, repo_dir: Path, timeout: float | None = None) -> str:
    """Pull the checked-out branch from ``origin`` and return the branch name."""
    log.info("git_pull_started", repo_dir=str(repo_dir))

    probe = await runner.run(["git", "rev-parse", "--git-dir"], cwd=repo_dir)
    if not probe.ok:
        raise PreconditionError(f"Not a git repository: {repo_dir}")

    branch = await current_branch(runner, repo_dir)
    log.info("git_current_branch", branch=branch)

    (
        await runner.run(
            ["git", "pull", "origin", branch],
            cwd=repo_dir,
            timeout=timeout,
            capture=False,
        )
    ).check()
    log.info("git_pull_complete", branch=branch)
    return branch
