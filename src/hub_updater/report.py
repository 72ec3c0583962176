"""Operator-facing banner and run summary."""

from __future__ import annotations

from hub_updater.compose import ComposeCommand
from hub_updater.config import DeployConfig
from hub_updater.pipeline import DeployResult

_WIDTH = 64


def _boxed(title: str) -> str:
    rule = "+" + "=" * _WIDTH + "+"
    blank = "|" + " " * _WIDTH + "|"
    return "\n".join([rule, blank, "|" + title.center(_WIDTH) + "|", blank, rule])


def render_banner() -> str:
    return _boxed("Claude Code Hub - Docker Update")


def render_summary(
    config: DeployConfig,
    result: DeployResult,
    compose: ComposeCommand,
    service: str = "app",
) -> str:
    """Summary printed after every completed run, healthy or not."""
    where = f"cd {config.deploy_dir} && {compose.display}"
    lines = [
        "",
        _boxed("Claude Code Hub Updated Successfully!"),
        "",
        "Deployment Directory:",
        f"   {config.deploy_dir}",
        "",
        "Image:",
        f"   {result.image_tag} (version {result.app_version})",
        "",
    ]
    if not result.healthy:
        lines += [
            f"Warning: {service} service may not be fully healthy yet.",
            f"   Check the logs: {where} logs -f {service}",
            "",
        ]
    lines += [
        "Useful Commands:",
        f"   View logs:     {where} logs -f {service}",
        f"   Stop services: {where} down",
        f"   Restart:       {where} restart {service}",
        "",
    ]
    return "\n".join(lines)
