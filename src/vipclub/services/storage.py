"""Local file storage for member cover and album images."""

import uuid
from pathlib import Path

import aiofiles
import aiofiles.os

from vipclub.config import settings

# Buckets mirror the storage buckets the admin panel uploads into
BUCKETS = ("member-covers", "member-albums")


class StorageError(Exception):
    """Raised for unknown buckets or keys escaping the upload directory."""

    pass


class StorageService:
    """Stores files under ``settings.storage_path`` and serves them from /uploads."""

    def __init__(self, root: str | Path | None = None) -> None:
        self.upload_dir = Path(root or settings.storage_path)
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        path = (self.upload_dir / key).resolve()
        if self.upload_dir.resolve() not in path.parents:
            raise StorageError(f"Invalid storage key: {key}")
        return path

    def _generate_key(self, bucket: str, extension: str) -> str:
        if bucket not in BUCKETS:
            raise StorageError(f"Unknown bucket: {bucket}")
        return f"{bucket}/{uuid.uuid4().hex}.{extension}"

    async def upload_file(self, data: bytes, bucket: str, extension: str) -> tuple[str, str]:
        """Write a file into a bucket and return (public_url, storage_key)."""
        key = self._generate_key(bucket, extension)
        file_path = self._path_for(key)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(file_path, "wb") as f:
            await f.write(data)

        return f"/uploads/{key}", key

    async def delete_file(self, key: str) -> bool:
        """Delete a file by key. Returns False if it did not exist."""
        file_path = self._path_for(key)
        if await aiofiles.os.path.exists(file_path):
            await aiofiles.os.remove(file_path)
            return True
        return False

    async def file_exists(self, key: str) -> bool:
        return await aiofiles.os.path.exists(self._path_for(key))


# Global storage service instance
storage = StorageService()
