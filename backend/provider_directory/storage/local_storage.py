import logging
import re
import time
from pathlib import Path
from typing import Optional

from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from provider_directory.core.config import Settings
from provider_directory.core.errors import InvalidInput

logger = logging.getLogger(__name__)

MAX_NAME_ATTEMPTS = 100


class LocalStorage:
    """
    Uploaded images and avatars on the local disk.

    Files live flat in UPLOAD_DIR and are addressed by their public path,
    e.g. /uploads/1718000000000-shop.png.
    """

    def __init__(self, settings: Settings):
        self.upload_dir = Path(settings.UPLOAD_DIR)
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.url_prefix = "/" + settings.UPLOAD_URL_PREFIX.strip("/")
        self.max_file_size = settings.MAX_FILE_SIZE
        self.allowed_extensions = settings.get_allowed_image_extensions()

    @staticmethod
    def safe_filename(original_name: str) -> str:
        # Keep only the base name and replace anything unusual
        base = Path(original_name.replace("\\", "/")).name
        safe = re.sub(r"[^A-Za-z0-9._-]", "_", base).strip("._")
        return safe or "upload"

    def build_filename(self, original_name: str, attempt: int = 0) -> str:
        """Upload time in milliseconds plus the sanitized original name"""
        stamp = int(time.time() * 1000)
        safe = self.safe_filename(original_name)
        if attempt:
            return f"{stamp}-{attempt}-{safe}"
        return f"{stamp}-{safe}"

    def _write_new(self, original_name: str, content: bytes) -> str:
        # "xb" never overwrites; same-name uploads in one millisecond get a counter
        for attempt in range(MAX_NAME_ATTEMPTS):
            filename = self.build_filename(original_name, attempt)
            try:
                with open(self.upload_dir / filename, "xb") as f:
                    f.write(content)
                return filename
            except FileExistsError:
                continue
        raise FileExistsError(f"Could not find a free upload name for {original_name}")

    async def save_file(self, file: UploadFile) -> str:
        """Save an uploaded file and return its public path"""
        if not file.filename:
            raise InvalidInput("Filename is required")

        file_ext = Path(file.filename).suffix.lower()
        if self.allowed_extensions and file_ext not in self.allowed_extensions:
            raise InvalidInput(
                f"File type not supported. Allowed: {', '.join(sorted(self.allowed_extensions))}")

        too_large = InvalidInput(f"File {file.filename} exceeds the maximum upload size")
        if file.size is not None and file.size > self.max_file_size:
            raise too_large
        # Read at most one byte past the limit
        content = await file.read(self.max_file_size + 1)
        if len(content) > self.max_file_size:
            raise too_large

        filename = await run_in_threadpool(self._write_new, file.filename, content)

        logger.info(f"Stored upload {file.filename} as {filename}")
        return f"{self.url_prefix}/{filename}"

    async def save_files(self, files: list[UploadFile]) -> list[str]:
        paths = []
        try:
            for file in files:
                paths.append(await self.save_file(file))
        except Exception:
            # One bad file fails the request; drop the ones already written
            self.discard(paths)
            raise
        return paths

    def get_file_path(self, public_path: str) -> Optional[Path]:
        """Map a public path back to disk; None for anything we did not store"""
        if not public_path or not public_path.startswith(self.url_prefix + "/"):
            return None
        filename = public_path[len(self.url_prefix) + 1:]
        if not filename or "/" in filename or filename in (".", ".."):
            return None
        return self.upload_dir / filename

    def is_upload(self, public_path: Optional[str]) -> bool:
        return public_path is not None and self.get_file_path(public_path) is not None

    def delete_file(self, public_path: str) -> bool:
        """Delete a stored upload. Best-effort: failures are logged, not raised"""
        file_path = self.get_file_path(public_path)
        if file_path is None:
            return False
        try:
            if file_path.exists():
                file_path.unlink()
                logger.info(f"Deleted upload {public_path}")
                return True
        except OSError as e:
            logger.error(f"Error deleting upload {public_path}: {str(e)}")
        return False

    def file_exists(self, public_path: str) -> bool:
        file_path = self.get_file_path(public_path)
        return file_path is not None and file_path.exists()

    def discard(self, public_paths: list[str]) -> None:
        for public_path in public_paths:
            self.delete_file(public_path)
