from functools import lru_cache
from typing import BinaryIO

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from fastapi import HTTPException, UploadFile
from loguru import logger

from app.config import settings


PROFILE_FOLDER = "profiles"
RECEIPT_FOLDER = "receipts"


class StorageError(Exception):
    """Raised when the image store rejects or fails an operation."""


class CloudinaryStorage:
    """Stores uploaded images in Cloudinary and hands back their URLs."""

    def __init__(self, cloud_name: str, api_key: str, api_secret: str):
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )

    def upload(self, fileobj: BinaryIO, folder: str) -> str:
        try:
            result = cloudinary.uploader.upload(fileobj, folder=folder)
        except CloudinaryError as e:
            raise StorageError(f"Upload to '{folder}' failed: {e}") from e

        url = result.get("secure_url") if result else None
        if not url:
            raise StorageError(f"Upload to '{folder}' returned no URL")
        return url

    def destroy(self, public_id: str) -> None:
        try:
            cloudinary.uploader.destroy(public_id)
        except CloudinaryError as e:
            raise StorageError(f"Delete of '{public_id}' failed: {e}") from e


@lru_cache(maxsize=1)
def get_storage() -> CloudinaryStorage:
    return CloudinaryStorage(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
    )


def public_id_from_url(url: str) -> str:
    """
    Derive the Cloudinary public id from a delivery URL:
    .../upload/v123/profiles/abc.jpg -> profiles/abc
    """
    tail = "/".join(url.rstrip("/").split("/")[-2:])
    return tail.split(".")[0]


def store_upload(storage, file: UploadFile, folder: str) -> str:
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    url = storage.upload(file.file, folder)
    logger.info(f"Stored {file.filename} in {folder}")
    return url


def discard_stored_object(storage, url: str) -> None:
    """Best-effort removal of a previously stored image."""
    public_id = public_id_from_url(url)
    try:
        storage.destroy(public_id)
    except StorageError as e:
        logger.warning(f"Could not remove old image {public_id}: {e}")
