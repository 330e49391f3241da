"""Stage definitions and the named sequences the CLI runs."""

from typing import Callable, Dict, List

from stackboot.runner import Stage, StageContext
from stackboot.stages.assets import compile_assets, install_frontend_and_compile, install_node_packages
from stackboot.stages.containers import build_images, start_stack
from stackboot.stages.database import create_db, rake_db_migrate_dev_and_test
from stackboot.stages.dependencies import bundle_install, install_backend_dependencies
from stackboot.stages.environment import configure_environment
from stackboot.stages.preflight import ensure_in_project_root
from stackboot.stages.verification import restart_and_verify


def _verify(ctx: StageContext) -> None:
    restart_and_verify(ctx)


PREFLIGHT = Stage("preflight", "Preflight", ensure_in_project_root)
CONFIGURE = Stage("configure", "Configure compose environment", configure_environment)
IMAGE_BUILD = Stage("image_build", "Build images", build_images)
STACK_START = Stage("stack_start", "Start containers", start_stack)
DEPENDENCY_INSTALL = Stage("dependency_install", "Install backend dependencies", install_backend_dependencies)
DATABASE_SETUP = Stage("database_setup", "Database setup", create_db)
FRONTEND_ASSETS = Stage("frontend_assets", "Install and build frontend assets", install_frontend_and_compile)
VERIFICATION = Stage("verification", "Verify app service", _verify)

BUNDLE_INSTALL = Stage("bundle_install", "Bundle install", bundle_install)
NODE_PACKAGES = Stage("node_packages", "Install node packages", install_node_packages)
MIGRATE = Stage("migrate", "Migrate development and test databases", rake_db_migrate_dev_and_test)
COMPILE_ASSETS = Stage("compile_assets", "Compile assets", compile_assets)


def setup_sequence() -> List[Stage]:
    return [
        PREFLIGHT,
        CONFIGURE,
        IMAGE_BUILD,
        STACK_START,
        DEPENDENCY_INSTALL,
        DATABASE_SETUP,
        FRONTEND_ASSETS,
        VERIFICATION,
    ]


def update_sequence() -> List[Stage]:
    return [PREFLIGHT, BUNDLE_INSTALL, NODE_PACKAGES, MIGRATE, COMPILE_ASSETS]


SEQUENCES: Dict[str, Callable[[], List[Stage]]] = {
    "setup": setup_sequence,
    "update": update_sequence,
    "configure": lambda: [PREFLIGHT, CONFIGURE],
    "build-images": lambda: [PREFLIGHT, IMAGE_BUILD],
    "install": lambda: [PREFLIGHT, DEPENDENCY_INSTALL, FRONTEND_ASSETS],
    "db": lambda: [PREFLIGHT, DATABASE_SETUP],
    "compile-assets": lambda: [PREFLIGHT, COMPILE_ASSETS],
    "verify": lambda: [PREFLIGHT, VERIFICATION],
}
