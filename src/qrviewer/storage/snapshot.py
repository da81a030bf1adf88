"""In-memory storage backend persisted as a JSON snapshot.

The whole dataset lives in memory. After every mutating call the complete
snapshot is re-serialized and atomically replaces the file on disk, so a write
is durable once the call returns. Each flush costs O(database size).

Several processes may share one snapshot file (the API server and the admin
CLI). Every mutation holds an inter-process file lock across
reload-if-changed + mutate + serialize + replace, so a writer never overwrites
rows another process flushed after this one last read the file. Within a
process a thread lock serializes writers.

Reads take no lock. They reload first when the file on disk was replaced by
another process. The token table is swapped copy-on-write during sweeps, and
parents are always installed before the tokens that reference them.
"""

import json
import os
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

from filelock import FileLock, Timeout
from pydantic import ValidationError
from sqlmodel import SQLModel

from src.qrviewer.core.exceptions import ConflictError, NotFoundError, StorageError
from src.qrviewer.core.logging import get_logger
from src.qrviewer.models import ModelVersion, Project, TokenView, ViewerToken, utc_now
from src.qrviewer.storage.base import Clock, StorageEngine

logger = get_logger(__name__)

SNAPSHOT_FORMAT = 1
LOCK_TIMEOUT_SECONDS = 10.0

# (inode, mtime_ns, size) of the snapshot file as last read or written
FileStamp = tuple[int, int, int]


RowType = TypeVar("RowType", bound=SQLModel)


def _detached(row: RowType) -> RowType:
    """Copy a stored row so callers cannot mutate engine state."""
    return type(row)(**row.model_dump())


class SnapshotStorageEngine(StorageEngine):
    """Storage engine holding all rows in memory with a write-through JSON snapshot."""

    backend_name = "snapshot"

    def __init__(self, path: str | Path, clock: Clock = utc_now):
        super().__init__(clock)
        self.path = Path(path)
        self._write_lock = threading.Lock()
        self._file_lock = FileLock(
            self.path.with_name(f".{self.path.name}.lock"), timeout=LOCK_TIMEOUT_SECONDS
        )
        self._stamp: FileStamp | None = None

        self._projects: dict[int, Project] = {}
        self._projects_by_slug: dict[str, Project] = {}
        self._versions: dict[int, ModelVersion] = {}
        self._versions_by_project: dict[int, list[ModelVersion]] = {}
        self._tokens: dict[str, ViewerToken] = {}
        self._next_project_id = 1
        self._next_version_id = 1

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._exclusive():
            if self._stamp is None:
                logger.info("No snapshot found, starting empty", path=str(self.path))

    # Snapshot I/O

    def _disk_stamp(self) -> FileStamp | None:
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Could not stat snapshot {self.path}: {e}") from e
        return (st.st_ino, st.st_mtime_ns, st.st_size)

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """Hold both locks and bring memory up to date with the file."""
        with self._write_lock:
            try:
                self._file_lock.acquire()
            except Timeout as e:
                raise StorageError(f"Timed out waiting for snapshot lock on {self.path}") from e
            try:
                self._reload_if_changed()
                yield
            finally:
                self._file_lock.release()

    def _reload_if_changed(self) -> None:
        """Must be called with both locks held."""
        stamp = self._disk_stamp()
        if stamp is None or stamp == self._stamp:
            return
        self._load()
        self._stamp = stamp

    def _refresh_for_read(self) -> None:
        """Pick up writes flushed by another process since the last load."""
        stamp = self._disk_stamp()
        if stamp is not None and stamp != self._stamp:
            with self._exclusive():
                pass

    def _load(self) -> None:
        """Replace memory with the contents of the snapshot file."""
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
            if document.get("format") != SNAPSHOT_FORMAT:
                raise StorageError(
                    f"Unsupported snapshot format {document.get('format')!r} in {self.path}"
                )
            projects = [Project.model_validate(row) for row in document.get("projects", [])]
            versions = [
                ModelVersion.model_validate(row) for row in document.get("model_versions", [])
            ]
            tokens = [ViewerToken.model_validate(row) for row in document.get("viewer_tokens", [])]
        except (OSError, ValueError, ValidationError, AttributeError) as e:
            raise StorageError(f"Could not load snapshot {self.path}: {e}") from e

        if any(row.id is None for row in (*projects, *versions)):
            raise StorageError(f"Could not load snapshot {self.path}: row without an id")

        projects_by_id = {p.id: p for p in projects}
        versions_by_project: dict[int, list[ModelVersion]] = {}
        # Snapshot rows are written in id order, which is insertion order
        for version in sorted(versions, key=lambda v: v.id):
            versions_by_project.setdefault(version.project_id, []).append(version)

        # Parents first: a lock-free reader must never see a token whose parent is missing
        self._projects = projects_by_id
        self._projects_by_slug = {p.slug: p for p in projects}
        self._versions = {v.id: v for v in versions}
        self._versions_by_project = versions_by_project
        self._tokens = {token.token: token for token in tokens}

        self._next_project_id = max(self._projects, default=0) + 1
        self._next_version_id = max(self._versions, default=0) + 1

        logger.info(
            "Snapshot loaded",
            path=str(self.path),
            projects=len(self._projects),
            model_versions=len(self._versions),
            viewer_tokens=len(self._tokens),
        )

    def _serialize(self) -> str:
        document: dict[str, Any] = {
            "format": SNAPSHOT_FORMAT,
            "projects": [p.model_dump(mode="json") for p in self._projects.values()],
            "model_versions": [v.model_dump(mode="json") for v in self._versions.values()],
            "viewer_tokens": [t.model_dump(mode="json") for t in self._tokens.values()],
        }
        return json.dumps(document, indent=2)

    def _flush(self) -> None:
        """Overwrite the snapshot file atomically (temp file, fsync, rename)."""
        payload = self._serialize()
        tmp_path = self.path.with_name(f".{self.path.name}.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Could not write snapshot {self.path}: {e}") from e

    def _commit(self, undo: Callable[[], None]) -> None:
        """Flush the snapshot; on failure revert the in-memory mutation.

        Must be called inside _exclusive().
        """
        try:
            self._flush()
        except StorageError:
            undo()
            logger.error("Snapshot flush failed, mutation reverted", path=str(self.path))
            raise
        self._stamp = self._disk_stamp()

    # Projects

    def create_project(self, slug: str, name: str) -> int:
        with self._exclusive():
            if slug in self._projects_by_slug:
                raise ConflictError(f"Project with slug '{slug}' already exists")

            project_id = self._next_project_id
            project = Project(id=project_id, slug=slug, name=name, created_at=self.clock())
            self._projects[project_id] = project
            self._projects_by_slug[slug] = project
            self._next_project_id += 1

            def undo() -> None:
                del self._projects_by_slug[slug]
                del self._projects[project_id]
                self._next_project_id = project_id

            self._commit(undo)
            return project_id

    def get_project_by_slug(self, slug: str) -> Project | None:
        self._refresh_for_read()
        project = self._projects_by_slug.get(slug)
        return _detached(project) if project is not None else None

    # Model versions

    def create_model_version(self, project_id: int, version: str, ifc_file_url: str) -> int:
        with self._exclusive():
            if project_id not in self._projects:
                raise NotFoundError("Project does not exist")
            siblings = self._versions_by_project.setdefault(project_id, [])
            if any(existing.version == version for existing in siblings):
                raise ConflictError(f"Model version '{version}' already exists for project")

            version_id = self._next_version_id
            model_version = ModelVersion(
                id=version_id,
                project_id=project_id,
                version=version,
                ifc_file_url=ifc_file_url,
                created_at=self.clock(),
            )
            self._versions[version_id] = model_version
            siblings.append(model_version)
            self._next_version_id += 1

            def undo() -> None:
                siblings.remove(model_version)
                del self._versions[version_id]
                self._next_version_id = version_id

            self._commit(undo)
            return version_id

    def get_model_version(self, project_id: int, version: str) -> ModelVersion | None:
        self._refresh_for_read()
        for model_version in list(self._versions_by_project.get(project_id, ())):
            if model_version.version == version:
                return _detached(model_version)
        return None

    def get_latest_model_version(self, project_id: int) -> ModelVersion | None:
        versions = self.list_model_versions(project_id)
        return versions[0] if versions else None

    def list_model_versions(self, project_id: int) -> list[ModelVersion]:
        self._refresh_for_read()
        versions = list(self._versions_by_project.get(project_id, ()))
        # created_at first, id breaks ties so the last inserted wins
        versions.sort(key=lambda v: (v.created_at, v.id), reverse=True)
        return [_detached(v) for v in versions]

    # Viewer tokens

    def create_token(
        self,
        token: str,
        project_id: int,
        model_version_id: int,
        ifc_global_id: str,
        expires_at: datetime,
    ) -> None:
        with self._exclusive():
            if token in self._tokens:
                raise ConflictError("Token already exists")
            if project_id not in self._projects or model_version_id not in self._versions:
                raise NotFoundError("Referenced project or model version does not exist")

            self._tokens[token] = ViewerToken(
                token=token,
                project_id=project_id,
                model_version_id=model_version_id,
                ifc_global_id=ifc_global_id,
                expires_at=expires_at,
                created_at=self.clock(),
            )

            def undo() -> None:
                del self._tokens[token]

            self._commit(undo)

    def get_token_data(self, token: str) -> TokenView | None:
        self._refresh_for_read()
        row = self._tokens.get(token)
        if row is None:
            return None
        project = self._projects[row.project_id]
        model_version = self._versions[row.model_version_id]
        return TokenView(
            token=row.token,
            project_slug=project.slug,
            project_name=project.name,
            model_version=model_version.version,
            ifc_file_url=model_version.ifc_file_url,
            ifc_global_id=row.ifc_global_id,
            expires_at=row.expires_at,
        )

    def delete_expired_tokens(self, now: datetime) -> int:
        with self._exclusive():
            previous = self._tokens
            remaining = {key: row for key, row in previous.items() if not row.expires_at < now}
            deleted = len(previous) - len(remaining)
            if deleted == 0:
                return 0

            self._tokens = remaining

            def undo() -> None:
                self._tokens = previous

            self._commit(undo)
            return deleted
