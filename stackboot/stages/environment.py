"""Compose environment configuration: container config, override file and .env."""

import logging
import shutil
from pathlib import Path

from stackboot.runner import StageContext

logger = logging.getLogger(__name__)


def copy_docker_config(ctx: StageContext, root: Path | None = None) -> list[Path]:
    """Copy the stack's *.yml config files into the app's config directory."""
    root = root or Path.cwd()
    source_dir = root / ctx.settings.docker_config_dir
    target_dir = root / ctx.settings.config_dir
    ctx.console.message("Copying docker configuration...")
    sources = sorted(source_dir.glob("*.yml"))
    if not sources:
        logger.info("no docker config files in %s", source_dir)
        return []
    if not ctx.console.confirm_command(
        f"cp {ctx.settings.docker_config_dir}/*.yml {ctx.settings.config_dir}/"
    ):
        return []
    target_dir.mkdir(parents=True, exist_ok=True)
    copied = []
    for src in sources:
        shutil.copy2(src, target_dir / src.name)
        copied.append(target_dir / src.name)
    logger.info("copied %d docker config files", len(copied))
    return copied


def compose_file_line(ctx: StageContext) -> str:
    return "COMPOSE_FILE=" + ":".join(ctx.settings.compose_files)


def setup_docker_compose_override(ctx: StageContext, root: Path | None = None) -> bool:
    """Seed the override file and write .env.

    The override file is copied from its template only when missing. An
    existing .env is kept unless the operator asks for a reset. Returns True
    when .env was (re)written.
    """
    root = root or Path.cwd()
    console = ctx.console
    override = root / ctx.settings.override_file
    template = root / ctx.settings.override_template
    env_file = root / ctx.settings.env_file

    console.message("Setup override yaml and .env...")
    if override.exists():
        console.message(f"{ctx.settings.override_file} already exists, skipping copy of default configuration!")
    elif template.exists():
        console.message(
            f"Copying default configuration from {ctx.settings.override_template} to {ctx.settings.override_file}"
        )
        shutil.copyfile(template, override)
    else:
        console.warning(f"{ctx.settings.override_template} not found, not creating {ctx.settings.override_file}")

    if env_file.exists():
        answer = console.prompt(
            f"{ctx.settings.env_file} file exists, would you like to reset it to default? [y/n]",
            default="n",
        )
        if answer.lower() != "y":
            return False

    console.message("Setting up default .env configuration")
    env_file.write_text(compose_file_line(ctx))
    return True


def configure_environment(ctx: StageContext) -> None:
    copy_docker_config(ctx)
    setup_docker_compose_override(ctx)
