"""Frontend package install and asset compilation."""

import logging
import shlex
from dataclasses import dataclass

from stackboot.permissions import RemediationResult, ensure_writable, remediate_shell
from stackboot.runner import StageContext, StageOutcome

logger = logging.getLogger(__name__)

YARN_PROBE = "packages/canvas-media/test-write"
WEBPACK_PROBE = "ui/shared/bundles/extensions.ts"


@dataclass(frozen=True)
class GeneratedArtifact:
    """A file the compiler expects that is generated rather than checked in."""

    path: str
    description: str
    script: str


GENERATED_ARTIFACTS: tuple[GeneratedArtifact, ...] = (
    GeneratedArtifact(
        path="ui/shared/bundles/extensions.ts",
        description="stub extension module",
        script=(
            'mkdir -p ui/shared/bundles && echo "export default {};" > ui/shared/bundles/extensions.ts'
            " && chmod 666 ui/shared/bundles/extensions.ts"
        ),
    ),
    GeneratedArtifact(
        path="translations/en.json",
        description="default localization file",
        script=(
            "mkdir -p translations && cp packages/translations/lib/en.json translations/en.json"
            " && chmod 666 translations/en.json"
        ),
    ),
)


def fix_yarn_permissions(ctx: StageContext) -> RemediationResult:
    return remediate_shell(
        ctx,
        "mkdir -p packages/canvas-media/node_modules node_modules; "
        "touch yarn-error.log; chmod 666 yarn-error.log; "
        "chmod -R 777 packages/ node_modules/ 2>/dev/null || true",
    )


def fix_webpack_permissions(ctx: StageContext) -> RemediationResult:
    return remediate_shell(
        ctx,
        "mkdir -p ui/shared/bundles translations; "
        'echo "export default {};" > ui/shared/bundles/extensions.ts; '
        "cp packages/translations/lib/en.json translations/en.json; "
        "chmod -R 777 ui/shared/bundles/ translations/ 2>/dev/null || true",
    )


def check_yarn_permissions(ctx: StageContext) -> RemediationResult:
    ctx.console.message("Checking Yarn permissions...")
    return ensure_writable(
        ctx,
        [YARN_PROBE],
        fix_yarn_permissions,
        "The 'docker' user is not allowed to write to Yarn directories. We need write\n"
        "permissions so we can run yarn install.",
        strict=False,
    )


def check_webpack_permissions(ctx: StageContext) -> RemediationResult:
    ctx.console.message("Checking webpack compilation permissions...")
    return ensure_writable(
        ctx,
        [WEBPACK_PROBE],
        fix_webpack_permissions,
        "The 'docker' user is not allowed to write to webpack directories. We need write\n"
        "permissions so we can compile assets.",
        strict=False,
    )


def artifact_present(ctx: StageContext, artifact: GeneratedArtifact) -> bool:
    try:
        return ctx.run(ctx.in_app(["test", "-s", artifact.path])).ok
    except OSError:
        return False


def regenerate_missing_artifacts(ctx: StageContext, allowed: bool = True) -> list[GeneratedArtifact]:
    """Regenerate missing generated files; returns the ones still missing.

    With *allowed* False (the operator declined the webpack fix) nothing is
    run as root and missing files are only reported.
    """
    still_missing = []
    for artifact in GENERATED_ARTIFACTS:
        if artifact_present(ctx, artifact):
            continue
        if not allowed:
            logger.info("not regenerating %s: root changes declined", artifact.path)
            still_missing.append(artifact)
            continue
        ctx.console.message(f"Regenerating missing {artifact.description} ({artifact.path})...")
        result = remediate_shell(ctx, artifact.script, confirm=False)
        if not result.succeeded:
            logger.warning("could not regenerate %s: %s", artifact.path, result.detail)
            still_missing.append(artifact)
    return still_missing


def install_frontend_and_compile(ctx: StageContext) -> StageOutcome:
    """yarn install, regenerate generated files, compile.

    Compilation is attempted even when permission or artifact remediation
    did not fully succeed; that case is reported as PARTIAL.
    """
    script = ctx.settings.install_script
    problems: list[str] = []

    if not check_yarn_permissions(ctx).succeeded:
        problems.append(YARN_PROBE)
    ctx.run_in_app([script, "-c", "yarn"], "> Yarn install....")

    webpack = check_webpack_permissions(ctx)
    if not webpack.succeeded:
        problems.append(WEBPACK_PROBE)
    declined = not webpack.attempted and not webpack.succeeded
    problems.extend(a.path for a in regenerate_missing_artifacts(ctx, allowed=not declined))

    ctx.run_in_app([script, "-c", "compile"], "> Compile assets....")

    if problems:
        ctx.notes.append("assets compiled with unresolved files: " + ", ".join(sorted(set(problems))))
        ctx.console.warning(
            "Some generated files could not be repaired: " + ", ".join(shlex.quote(p) for p in sorted(set(problems)))
        )
        return StageOutcome.PARTIAL
    return StageOutcome.SUCCESS


def install_node_packages(ctx: StageContext) -> None:
    ctx.run_in_app(["bundle", "exec", "rake", "js:yarn_install"], "Installing Node packages...")


def compile_assets(ctx: StageContext) -> None:
    ctx.run_in_app(
        ["bundle", "exec", "rake", "canvas:compile_assets_dev"],
        "Compiling assets (css and js only, no docs or styleguide)...",
    )
