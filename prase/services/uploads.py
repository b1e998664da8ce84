"""Picture storage: the uploaded file plus a resized variant."""

import os
import uuid
from pathlib import Path

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from prase.config import get_settings
from prase.errors import ValidationError

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}


def thumbnail_name(stored_filename: str) -> str:
    width, height = get_settings().THUMBNAIL_SIZE
    return f"{width}x{height}{stored_filename}"


class PictureStorage:
    """Stores uploaded pictures under UPLOAD_DIR."""

    def validate_upload_metadata(self, filename: str) -> None:
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError.single(
                "picture", f"Unsupported file type '{ext}'. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
            )

    def store(self, upload: UploadFile) -> str:
        """Write ``upload`` to disk and derive its resized variant. Returns the stored file name."""
        settings = get_settings()
        self.validate_upload_metadata(upload.filename or "")

        max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
        ext = Path(upload.filename or "picture.bin").suffix.lower()
        stored_filename = f"picture-{uuid.uuid4().hex}{ext}"
        upload_dir = Path(settings.UPLOAD_DIR)
        upload_dir.mkdir(parents=True, exist_ok=True)
        file_path = upload_dir / stored_filename

        file_size = 0
        chunk_size = 1024 * 64
        try:
            with open(file_path, "wb") as f:
                while True:
                    chunk = upload.file.read(chunk_size)
                    if not chunk:
                        break
                    file_size += len(chunk)
                    if file_size > max_bytes:
                        raise ValidationError.single(
                            "picture", f"File too large. Maximum: {settings.MAX_UPLOAD_SIZE_MB}MB"
                        )
                    f.write(chunk)
            self._resize(file_path, upload_dir / thumbnail_name(stored_filename))
        except Exception:
            self.delete(stored_filename)
            raise
        return stored_filename

    def _resize(self, source: Path, target: Path) -> None:
        try:
            with Image.open(source) as image:
                image.resize(get_settings().THUMBNAIL_SIZE).save(target)
        except (UnidentifiedImageError, OSError):
            raise ValidationError.single("picture", "The uploaded file is not a readable image") from None

    def delete(self, stored_filename: str | None) -> None:
        if not stored_filename:
            return
        upload_dir = Path(get_settings().UPLOAD_DIR)
        for name in (stored_filename, thumbnail_name(stored_filename)):
            path = upload_dir / name
            if path.exists():
                os.remove(path)


_picture_storage: PictureStorage | None = None


def get_picture_storage() -> PictureStorage:
    """Get singleton picture storage instance."""
    global _picture_storage
    if _picture_storage is None:
        _picture_storage = PictureStorage()
    return _picture_storage
