from pathlib import Path

from stackboot.exceptions import PreflightError
from stackboot.runner import StageContext


def is_project_root(ctx: StageContext, root: Path | None = None) -> bool:
    """README's first line names the project and the directory is a git checkout."""
    root = root or Path.cwd()
    marker = root / ctx.settings.root_marker_file
    try:
        with open(marker, encoding="utf-8", errors="replace") as f:
            first_line = f.readline()
    except OSError:
        return False
    if ctx.settings.root_marker_text not in first_line:
        return False
    return (root / ".git").exists()


def ensure_in_project_root(ctx: StageContext) -> None:
    if not is_project_root(ctx):
        raise PreflightError(
            f"Please run from a {ctx.settings.root_marker_text.split()[0]} root directory"
        )
