"""
Filesystem-backed upload store.

Artifacts are written under `<web_root>/<folder>` with generated names and
are never updated or deleted once a save call has returned.
"""

from __future__ import annotations

import base64
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from media_uploads.config import DEFAULT_EXTENSION, UPLOAD_FOLDER, WEB_ROOT
from media_uploads.security.uploads import IncomingFile, StorageFailure, StoredImage
from media_uploads.services.naming import generate_name
from media_uploads.services.thumbnails import ThumbnailDeriver

logger = logging.getLogger(__name__)

FILE_MODE = 0o644


class UploadStore:
    """Stores multi-file and base64 uploads in a single flat folder."""

    def __init__(
        self,
        web_root: str | os.PathLike[str],
        folder: str = UPLOAD_FOLDER,
        extension: str = DEFAULT_EXTENSION,
        thumbnail_deriver: Optional[ThumbnailDeriver] = None,
        name_factory: Callable[[], str] = generate_name,
    ):
        self.web_root = Path(web_root)
        self.folder = folder
        self.extension = extension
        self.thumbnail_deriver = thumbnail_deriver or ThumbnailDeriver()
        self.name_factory = name_factory

    @property
    def upload_dir(self) -> Path:
        return self.web_root / self.folder

    def save_files(self, files: Sequence[IncomingFile]) -> List[str]:
        """
        Store each payload as `<folder>/<generated>.<extension>`.

        The declared file name is ignored: every artifact gets the default
        extension. Paths are returned in input order once all writes have
        succeeded. On failure the artifacts written by this call are removed
        and `StorageFailure` is raised.
        """
        relative_paths: List[str] = []
        written: List[Path] = []
        try:
            for file in files:
                file_name = f"{self.name_factory()}.{self.extension}"
                written.append(self._write(file_name, file.data))
                relative_paths.append(self._relative(file_name))
        except Exception as exc:
            self._rollback(written)
            logger.error("Failed to store upload batch: %s", exc)
            raise StorageFailure(str(exc)) from exc

        if relative_paths:
            logger.info("Stored %d uploaded file(s) in %s", len(relative_paths), self.folder)
        return relative_paths

    def save_base64(self, payload: str) -> StoredImage:
        """
        Store a base64 image verbatim together with its thumbnail.

        Writes `<name>.<extension>` and `<name>_thumb.<extension>`. If any step
        fails nothing is left on disk and `StorageFailure` is raised.
        """
        name = self.name_factory()
        file_name = f"{name}.{self.extension}"
        thumb_name = f"{name}_thumb.{self.extension}"

        written: List[Path] = []
        try:
            image_bytes = decode_base64(payload)
            written.append(self._write(file_name, image_bytes))
            thumbnail = self.thumbnail_deriver.render(image_bytes)
            written.append(self._write(thumb_name, thumbnail))
        except Exception as exc:
            self._rollback(written)
            logger.error("Failed to store base64 upload: %s", exc)
            raise StorageFailure(str(exc)) from exc

        logger.info("Stored base64 upload %s with thumbnail", file_name)
        return StoredImage(
            path=self._relative(file_name),
            thumbnail_path=self._relative(thumb_name),
        )

    def _relative(self, file_name: str) -> str:
        return f"{self.folder}/{file_name}"

    def _ensure_upload_dir(self) -> Path:
        upload_dir = self.upload_dir
        # Another request may create it at the same time.
        upload_dir.mkdir(parents=True, exist_ok=True)
        return upload_dir

    def _write(self, file_name: str, data: bytes) -> Path:
        """Write to a hidden temporary file, then rename it into place."""
        upload_dir = self._ensure_upload_dir()
        target = upload_dir / file_name
        fd, tmp_name = tempfile.mkstemp(dir=upload_dir, prefix=f".{file_name}.", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as stream:
                stream.write(data)
            # mkstemp creates 0600 files; artifacts are served publicly.
            os.chmod(tmp_name, FILE_MODE)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return target

    @staticmethod
    def _rollback(paths: Sequence[Path]) -> None:
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError:
                logger.exception("Could not remove partial artifact %s", path)


def decode_base64(payload: str) -> bytes:
    """Strictly decode base64, ignoring embedded whitespace."""
    compact = "".join((payload or "").split())
    if not compact:
        raise ValueError("Base64 payload is empty")
    return base64.b64decode(compact, validate=True)


def build_upload_store(web_root: str | os.PathLike[str] = WEB_ROOT) -> UploadStore:
    """Create the store used by the application process."""
    store = UploadStore(web_root)
    logger.info("Upload store rooted at %s", store.upload_dir)
    return store
