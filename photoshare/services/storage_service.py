import logging
import uuid
from pathlib import Path
from typing import Optional

from photoshare.config import config
from photoshare.services.cleanup_service import CleanupWorker
from photoshare.services.singleton_base_service import SingletonBaseService
from photoshare.utils.files import write_file_bytes, delete_file

logger = logging.getLogger(__name__)

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
}


class UnsupportedContentType(Exception):
    pass


class StorageService(SingletonBaseService):
    def __init__(self, root: Optional[Path] = None):
        if getattr(self, "_initialized", False):
            return

        self.root: Path = root or config.STORAGE_PATH
        self.cleaner = CleanupWorker.get_instance()
        self._initialized = True

    def path_for(self, filename: str) -> Path:
        return self.root / filename

    @staticmethod
    def generate_filename(content_type: str) -> str:
        ext = CONTENT_TYPE_EXTENSIONS.get(content_type)
        if ext is None:
            raise UnsupportedContentType(f"Unsupported content type '{content_type}'.")

        return f"{uuid.uuid4().hex}{ext}"

    async def store(self, content: bytes, original_name: str, content_type: str) -> str:
        filename = self.generate_filename(content_type)
        await write_file_bytes(content, self.path_for(filename))
        logger.info("Stored %s as %s (%d bytes)", original_name, filename, len(content))
        return filename

    async def remove(self, filename: str) -> bool:
        removed = await delete_file(self.path_for(filename))
        if removed:
            logger.info("Removed %s", filename)
        else:
            logger.warning("Could not remove %s", filename)
        return removed

    def schedule_cleanup(self, filename: str) -> None:
        self.cleaner.submit(self.remove, filename)
