"""Blob storage for feedback images and the upload coordinator."""

import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

from gridfs.errors import NoFile
from motor.motor_asyncio import AsyncIOMotorGridFSBucket

from app.core.exceptions import NotFoundError, UploadFailedError

logger = logging.getLogger(__name__)

Stage = Literal["before", "after"]


@dataclass(frozen=True)
class Attachment:
    """An image attached to a submission. Contents are opaque."""

    filename: str
    data: bytes
    content_type: str | None = None


@dataclass(frozen=True)
class StoredBlob:
    key: str
    data: bytes
    content_type: str | None = None


class BlobStoreInterface(ABC):
    """Abstract blob store interface."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str | None = None) -> str:
        """Store a blob under key and return the key."""
        pass

    @abstractmethod
    async def get(self, key: str) -> StoredBlob:
        """Fetch a blob by key."""
        pass


class GridFSBlobStore(BlobStoreInterface):
    """GridFS implementation of the blob store. Keys are GridFS filenames."""

    def __init__(self, bucket: AsyncIOMotorGridFSBucket):
        self._bucket = bucket

    async def put(self, key: str, data: bytes, content_type: str | None = None) -> str:
        """Store a blob under key."""
        metadata = {"content_type": content_type} if content_type else None
        await self._bucket.upload_from_stream(key, data, metadata=metadata)
        return key

    async def get(self, key: str) -> StoredBlob:
        """Fetch a blob by key."""
        try:
            stream = await self._bucket.open_download_stream_by_name(key)
        except NoFile:
            raise NotFoundError("Image", key)
        data = await stream.read()
        metadata = stream.metadata or {}
        return StoredBlob(key=key, data=data, content_type=metadata.get("content_type"))


def public_url(base_path: str, key: str | None) -> str | None:
    """Build the publicly fetchable URL of a stored key."""
    if not key:
        return None
    return f"{base_path}/{key}"


class _MonotonicMillis:
    """Millisecond clock that never hands out the same value twice."""

    def __init__(self):
        self._last = 0

    def next(self) -> int:
        now = time.time_ns() // 1_000_000
        self._last = now if now > self._last else self._last + 1
        return self._last


_stamp = _MonotonicMillis()


_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def build_blob_key(stage: Stage, original_name: str) -> str:
    """Collision-resistant key: stage prefix, unique stamp, original name.

    Characters outside ``[A-Za-z0-9._-]`` become ``_`` so the key can be
    appended to a base URL as-is.
    """
    name = _UNSAFE_KEY_CHARS.sub("_", original_name) or "image"
    return f"{stage}_{_stamp.next()}_{name}"


class AssetUploadCoordinator:
    """Uploads the optional before/after images of one submission."""

    def __init__(self, blob_store: BlobStoreInterface):
        self._store = blob_store

    async def upload(self, stage: Stage, attachment: Attachment) -> str:
        """
        Upload a single attachment.

        Raises:
            UploadFailedError: The blob store rejected the upload.
        """
        key = build_blob_key(stage, attachment.filename)
        try:
            stored = await self._store.put(key, attachment.data, attachment.content_type)
        except Exception as e:
            logger.error(f"Upload of {stage} image '{key}' failed: {e}")
            raise UploadFailedError(stage) from e
        logger.info(f"Uploaded {stage} image as '{stored}'")
        return stored

    async def upload_all(
        self,
        before: Attachment | None = None,
        after: Attachment | None = None,
    ) -> tuple[str | None, str | None]:
        """
        Upload present attachments in order: before, then after.

        The first failure aborts; the after image is not attempted if the
        before image fails. Blobs stored before the failure are left in place.

        Returns:
            (before_key, after_key), None for absent attachments
        """
        before_key = await self.upload("before", before) if before else None
        after_key = await self.upload("after", after) if after else None
        return before_key, after_key
