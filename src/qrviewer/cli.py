"""Admin command line.

Usage:
    python -m src.qrviewer serve
    python -m src.qrviewer migrate
    python -m src.qrviewer seed
    python -m src.qrviewer add-project SLUG NAME
    python -m src.qrviewer add-version SLUG VERSION URL
    python -m src.qrviewer versions SLUG
    python -m src.qrviewer issue SLUG GLOBAL_ID [--model-version V] [--expiry-days N]
    python -m src.qrviewer sweep

Projects and model versions have no HTTP surface; they are registered here.
"""

import argparse
import sys
from collections.abc import Callable, Sequence

import uvicorn

from src.qrviewer.core.config import get_settings
from src.qrviewer.core.exceptions import ConflictError, QRViewerError
from src.qrviewer.core.logging import get_logger, setup_logging
from src.qrviewer.core.migrations import run_migrations_sync
from src.qrviewer.models import utc_now
from src.qrviewer.services import LATEST_VERSION, TokenService
from src.qrviewer.storage import StorageEngine, create_storage

logger = get_logger(__name__)

SAMPLE_PROJECT_SLUG = "sample-office-building"
SAMPLE_PROJECT_NAME = "Sample Office Building"
SAMPLE_MODEL_VERSION = "v1.0"
SAMPLE_IFC_FILE_URL = "https://github.com/IFCjs/test-ifc-files/raw/main/Duplex_A_20110505.ifc"


def cmd_serve(args: argparse.Namespace) -> int:
    settings = get_settings()
    uvicorn.run(
        "src.qrviewer.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
    )
    return 0


def cmd_migrate(args: argparse.Namespace) -> int:
    settings = get_settings()
    if settings.storage_backend != "sql":
        print(f"Storage backend '{settings.storage_backend}' has no schema to migrate")
        return 0
    run_migrations_sync(settings.database_url)
    print("Database schema is up to date")
    return 0


def _require_project_id(storage: StorageEngine, slug: str) -> int:
    project = storage.get_project_by_slug(slug)
    if project is None or project.id is None:
        raise QRViewerError(f"Project '{slug}' does not exist")
    return project.id


def cmd_seed(storage: StorageEngine, args: argparse.Namespace) -> int:
    """Create the sample project and model version. Safe to run repeatedly."""
    try:
        storage.create_project(SAMPLE_PROJECT_SLUG, SAMPLE_PROJECT_NAME)
        print(f"Created project: {SAMPLE_PROJECT_NAME} ({SAMPLE_PROJECT_SLUG})")
    except ConflictError:
        print(f"Project already exists: {SAMPLE_PROJECT_SLUG}")

    project_id = _require_project_id(storage, SAMPLE_PROJECT_SLUG)
    try:
        storage.create_model_version(project_id, SAMPLE_MODEL_VERSION, SAMPLE_IFC_FILE_URL)
        print(f"Created model version: {SAMPLE_MODEL_VERSION}")
        print(f"  IFC file: {SAMPLE_IFC_FILE_URL}")
    except ConflictError:
        print(f"Model version already exists: {SAMPLE_MODEL_VERSION}")
    return 0


def cmd_add_project(storage: StorageEngine, args: argparse.Namespace) -> int:
    project_id = storage.create_project(args.slug, args.name)
    print(f"Created project {args.slug} (id={project_id})")
    return 0


def cmd_add_version(storage: StorageEngine, args: argparse.Namespace) -> int:
    project_id = _require_project_id(storage, args.slug)
    version_id = storage.create_model_version(project_id, args.version, args.url)
    print(f"Created model version {args.version} for {args.slug} (id={version_id})")
    return 0


def cmd_versions(storage: StorageEngine, args: argparse.Namespace) -> int:
    project_id = _require_project_id(storage, args.slug)
    versions = storage.list_model_versions(project_id)
    if not versions:
        print(f"No model versions for {args.slug}")
        return 0
    for i, version in enumerate(versions):
        marker = " (latest)" if i == 0 else ""
        created = version.created_at.isoformat()
        print(f"{version.version}\t{created}\t{version.ifc_file_url}{marker}")
    return 0


def cmd_issue(storage: StorageEngine, args: argparse.Namespace) -> int:
    settings = get_settings()
    service = TokenService(storage, max_expiry_days=settings.max_expiry_days)
    expiry_days = settings.default_expiry_days if args.expiry_days is None else args.expiry_days
    token = service.issue(
        args.slug,
        args.global_id,
        model_version=args.model_version,
        expiry_days=expiry_days,
    )
    print(f"{settings.viewer_base_url}/view/{token}")
    return 0


def cmd_sweep(storage: StorageEngine, args: argparse.Namespace) -> int:
    deleted = TokenService(storage).sweep(utc_now())
    print(f"Deleted {deleted} expired token(s)")
    return 0


StorageCommand = Callable[[StorageEngine, argparse.Namespace], int]

STORAGE_COMMANDS: dict[str, StorageCommand] = {
    "seed": cmd_seed,
    "add-project": cmd_add_project,
    "add-version": cmd_add_version,
    "versions": cmd_versions,
    "issue": cmd_issue,
    "sweep": cmd_sweep,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.qrviewer",
        description="QR IFC Viewer administration",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_serve = subparsers.add_parser("serve", help="Run the API server")
    p_serve.add_argument("--host", help="Bind address (default: settings.host)")
    p_serve.add_argument("--port", type=int, help="Port (default: settings.port)")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    subparsers.add_parser("migrate", help="Apply database migrations (sql backend)")
    subparsers.add_parser("seed", help="Create the sample project and model version")

    p_project = subparsers.add_parser("add-project", help="Register a project")
    p_project.add_argument("slug")
    p_project.add_argument("name")

    p_version = subparsers.add_parser("add-version", help="Register a model version")
    p_version.add_argument("slug")
    p_version.add_argument("version")
    p_version.add_argument("url", help="URL of the IFC file")

    p_versions = subparsers.add_parser("versions", help="List a project's model versions")
    p_versions.add_argument("slug")

    p_issue = subparsers.add_parser("issue", help="Issue a viewer token and print its URL")
    p_issue.add_argument("slug")
    p_issue.add_argument("global_id", help="IFC GlobalId of the element")
    p_issue.add_argument("--model-version", default=LATEST_VERSION)
    p_issue.add_argument("--expiry-days", type=int)

    subparsers.add_parser("sweep", help="Delete expired tokens now")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.debug)

    if args.command == "serve":
        return cmd_serve(args)
    if args.command == "migrate":
        return cmd_migrate(args)

    storage = create_storage(settings)
    try:
        return STORAGE_COMMANDS[args.command](storage, args)
    except (QRViewerError, ValueError) as e:
        logger.debug("Command failed", command=args.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        storage.close()
