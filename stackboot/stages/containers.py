import os

from stackboot.runner import StageContext


def _user_id() -> str:
    return str(os.getuid()) if hasattr(os, "getuid") else "1000"


def image_build_command(ctx: StageContext) -> list[str]:
    """Build argv; CI and Linux hosts pass the caller's uid into the image."""
    settings = ctx.settings
    # CI and Linux builds always use plain "docker compose", not DOCKER_COMMAND
    if settings.automation:
        return ["docker", "compose", "build", "--build-arg", f"USER_ID={_user_id()}"]
    if settings.is_linux and not settings.skip_docker_usermod:
        return ["docker", "compose", "build", "--pull", "--build-arg", f"USER_ID={_user_id()}"]
    return ctx.compose("build", "--pull")


def build_images(ctx: StageContext) -> None:
    ctx.run_checked(image_build_command(ctx), "Building docker images...")


def start_stack(ctx: StageContext) -> None:
    ctx.run_checked(ctx.compose("up", "-d"), "Starting containers...")
