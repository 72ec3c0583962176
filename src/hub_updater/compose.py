"""Docker Compose CLI and compose descriptor handling."""

from __future__ import annotations

import re
import shlex
import shutil
from dataclasses import dataclass
from pathlib import Path

from hub_updater.logging import get_logger
from hub_updater.runner import CommandRunner

log = get_logger("hub_updater.compose")

BACKUP_SUFFIX = ".backup"

COMPOSE_PLUGIN = ("docker", "compose")
COMPOSE_STANDALONE = ("docker-compose",)


@dataclass(frozen=True)
class ComposeCommand:
    """Compose invocation prefix: the ``docker compose`` plugin or legacy ``docker-compose``."""

    base: tuple[str, ...] = COMPOSE_PLUGIN

    def __call__(self, *args: str) -> list[str]:
        return [*self.base, *args]

    @property
    def display(self) -> str:
        return shlex.join(self.base)


async def detect_compose(runner: CommandRunner) -> ComposeCommand:
    """Prefer the compose plugin; fall back to the standalone binary."""
    result = await runner.run([*COMPOSE_PLUGIN, "version"], timeout=30)
    if result.ok:
        return ComposeCommand(COMPOSE_PLUGIN)
    log.debug("compose_plugin_unavailable", fallback=shlex.join(COMPOSE_STANDALONE))
    return ComposeCommand(COMPOSE_STANDALONE)


async def restart_services(
    runner: CommandRunner, compose: ComposeCommand, deploy_dir: Path
) -> None:
    """Take the stack down and bring it back up detached. Fails fast."""
    log.info("services_restarting", deploy_dir=str(deploy_dir))
    (await runner.run(compose("down"), cwd=deploy_dir, capture=False)).check()
    (await runner.run(compose("up", "-d"), cwd=deploy_dir, capture=False)).check()
    log.info("services_restarted")


# ---------------------------------------------------------------------------
# Compose descriptor
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ComposeFileUpdate:
    """What ``update_compose_file`` did."""

    path: Path
    backup_path: Path
    backup_created: bool
    replacements: int

    @property
    def changed(self) -> bool:
        return self.replacements > 0


def image_reference_pattern(registry_image: str) -> re.Pattern[str]:
    """Match ``image: <registry_image>:<tag>`` through to the end of the line."""
    return re.compile(rf"image: {re.escape(registry_image)}:.*")


def rewrite_image_reference(text: str, registry_image: str, local_tag: str) -> tuple[str, int]:
    """Point every registry image reference at ``local_tag``.

    Returns the new text and the number of references replaced. Applying
    it to already rewritten text changes nothing.
    """
    replacement = f"image: {local_tag}"
    return image_reference_pattern(registry_image).subn(lambda _match: replacement, text)


def backup_path_for(path: Path) -> Path:
    return path.with_name(path.name + BACKUP_SUFFIX)


def update_compose_file(path: Path, registry_image: str, local_tag: str) -> ComposeFileUpdate:
    """Back up the compose file once, then rewrite its image reference in place.

    An existing backup is never overwritten, so it always holds the file as
    it was before the first rewrite.
    """
    backup = backup_path_for(path)
    backup_created = False
    if not backup.exists():
        shutil.copy2(path, backup)
        backup_created = True
        log.info("compose_backup_created", backup=str(backup))

    original = path.read_text(encoding="utf-8")
    updated, count = rewrite_image_reference(original, registry_image, local_tag)
    if updated != original:
        tmp_path = path.with_name(path.name + ".tmp")
        tmp_path.write_text(updated, encoding="utf-8")
        shutil.copymode(path, tmp_path)
        tmp_path.replace(path)

    if count:
        log.info("compose_image_rewritten", path=str(path), image=local_tag, replacements=count)
    else:
        log.info("compose_image_unchanged", path=str(path), image=local_tag)

    return ComposeFileUpdate(
        path=path,
        backup_path=backup,
        backup_created=backup_created,
        replacements=count,
    )
