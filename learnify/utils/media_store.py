# learnify/utils/media_store.py

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from fastapi import UploadFile

from learnify.core.config import Settings
from learnify.core.enums import MediaFolder
from learnify.core.exceptions import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class MediaAsset:
    url: str
    public_id: str
    duration: float = 0


class MediaStore:
    """Store uploaded media on local disk with UUID naming.

    Files are served by the application under ``/storage``; the public id of an
    asset is its path relative to the storage root.
    """

    def __init__(
        self,
        base_storage_path: str = "storage",
        public_base_url: str = "http://localhost:8000",
        max_image_size_mb: int = 5,
        max_video_size_mb: int = 500,
        allowed_image_types: Iterable[str] = ("jpg", "jpeg", "png", "gif", "webp"),
        allowed_video_types: Iterable[str] = ("mp4", "mov", "webm", "mkv"),
    ):
        self.base_storage_path = Path(base_storage_path)
        self.public_base_url = public_base_url.rstrip("/")
        self.max_image_size = max_image_size_mb * 1024 * 1024
        self.max_video_size = max_video_size_mb * 1024 * 1024
        self.allowed_image_extensions = {f".{ext.lower().lstrip('.')}" for ext in allowed_image_types}
        self.allowed_video_extensions = {f".{ext.lower().lstrip('.')}" for ext in allowed_video_types}
        self._ensure_storage_directories()

    @classmethod
    def from_settings(cls, settings: Settings) -> "MediaStore":
        return cls(
            base_storage_path=settings.upload_dir,
            public_base_url=settings.app_url,
            max_image_size_mb=settings.max_image_size_mb,
            max_video_size_mb=settings.max_video_size_mb,
            allowed_image_types=settings.allowed_image_types,
            allowed_video_types=settings.allowed_video_types,
        )

    def _ensure_storage_directories(self):
        for folder in MediaFolder:
            (self.base_storage_path / folder.value).mkdir(parents=True, exist_ok=True)

    def _get_file_extension(self, filename: str) -> str:
        return Path(filename).suffix.lower()

    def _limits_for(self, folder: MediaFolder):
        if folder == MediaFolder.LECTURES:
            return self.allowed_video_extensions, self.max_video_size
        return self.allowed_image_extensions, self.max_image_size

    def _validate(self, file: UploadFile, folder: MediaFolder) -> str:
        if not file.filename:
            raise ValidationError("No filename provided")

        allowed, _ = self._limits_for(folder)
        extension = self._get_file_extension(file.filename)
        if extension not in allowed:
            raise ValidationError(
                f"Invalid file type. Allowed types: {', '.join(sorted(allowed))}"
            )
        return extension

    def url_for(self, public_id: str) -> str:
        return f"{self.public_base_url}/storage/{public_id}"

    async def upload(self, file: UploadFile, folder: MediaFolder) -> MediaAsset:
        """
        Save an uploaded file under ``folder``.

        Raises:
            ValidationError: wrong extension, empty or oversized file
            ExternalServiceError: the file could not be written
        """
        extension = self._validate(file, folder)
        _, max_size = self._limits_for(folder)

        contents = await file.read()
        await file.seek(0)

        if len(contents) == 0:
            raise ValidationError("Empty file uploaded")
        if len(contents) > max_size:
            raise ValidationError(
                f"File size exceeds maximum allowed size of {max_size / (1024 * 1024):.0f}MB"
            )

        uuid_filename = f"{uuid.uuid4()}{extension}"
        folder_path = self.base_storage_path / folder.value
        folder_path.mkdir(parents=True, exist_ok=True)

        try:
            with open(folder_path / uuid_filename, "wb") as f:
                f.write(contents)
        except OSError as e:
            logger.error(f"Error saving file {uuid_filename}: {e}")
            raise ExternalServiceError("Error uploading media")

        public_id = f"{folder.value}/{uuid_filename}"
        logger.info(f"Stored media {public_id} ({len(contents)} bytes)")
        return MediaAsset(url=self.url_for(public_id), public_id=public_id)

    def delete(self, public_id: Optional[str]) -> None:
        """Remove a stored file; unknown ids are ignored."""
        if not public_id:
            return
        file_path = (self.base_storage_path / public_id).resolve()
        if self.base_storage_path.resolve() not in file_path.parents:
            logger.warning(f"Refusing to delete media outside storage: {public_id}")
            return
        try:
            if file_path.is_file():
                file_path.unlink()
                logger.info(f"Deleted media {public_id}")
        except OSError as e:
            logger.error(f"Error deleting media {public_id}: {e}")
            raise ExternalServiceError("Error deleting media")
