"""
File Storage for Post Images
Writes uploaded image bytes to the local uploads directory and hands back
the public URL the file is served from.
"""

import os
import asyncio
import time
import uuid
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Optional

import aiofiles
from fastapi import UploadFile

from . import config
from .errors import UploadError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = '.bin'
MAX_NAME_ATTEMPTS = 5


@dataclass(frozen=True)
class UploadPayload:
    """Raw image bytes plus the name the client gave the file, if any"""
    data: bytes
    original_name: Optional[str] = None


def decode_base64_upload(image_base64: Optional[str], image_name: Optional[str] = None) -> Optional[UploadPayload]:
    """Decode a base64 image sent inside a JSON body. Empty input means no image."""
    if not image_base64:
        return None
    # Tolerate a full data URL (data:image/png;base64,....)
    if image_base64.startswith('data:') and ',' in image_base64:
        image_base64 = image_base64.split(',', 1)[1]
    try:
        data = base64.b64decode(image_base64, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError('Invalid base64 image data', fields=['imageBase64'])
    if not data:
        return None
    return UploadPayload(data=data, original_name=image_name or None)


async def read_upload_file(file: Optional[UploadFile]) -> Optional[UploadPayload]:
    """Read a multipart file field into an UploadPayload. Empty file means no image."""
    if file is None:
        return None
    data = await file.read()
    if not data:
        return None
    return UploadPayload(data=data, original_name=file.filename or None)


class UploadSink:
    """Directory-backed writer for uploaded images"""

    def __init__(self, upload_dir: str = config.UPLOAD_DIR,
                 url_prefix: str = config.UPLOADS_URL_PREFIX,
                 max_bytes: int = config.MAX_UPLOAD_BYTES):
        self.upload_dir = upload_dir
        self.url_prefix = url_prefix.rstrip('/')
        self.max_bytes = max_bytes

    @staticmethod
    def generate_filename(original_filename: Optional[str]) -> str:
        """Unique name from a nanosecond timestamp and a short random suffix"""
        file_ext = os.path.splitext(original_filename or '')[1].lower() or DEFAULT_EXTENSION
        unique_id = uuid.uuid4().hex[:7]
        return f"{time.time_ns()}-{unique_id}{file_ext}"

    def get_file_path(self, filename: str) -> str:
        return os.path.join(self.upload_dir, filename)

    def get_public_url(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    def ensure_directory(self) -> None:
        try:
            os.makedirs(self.upload_dir, exist_ok=True)
        except OSError as e:
            logger.error({'msg': 'upload_dir_create_failed', 'dir': self.upload_dir, 'error': str(e)})
            raise UploadError(f"Cannot create upload directory: {e}") from e

    async def save(self, payload: Optional[UploadPayload]) -> Optional[str]:
        """Persist the payload and return its public URL, or None when there is nothing to store"""
        if payload is None or not payload.data:
            return None
        if len(payload.data) > self.max_bytes:
            raise ValidationError(f"Image too large. Max size is {self.max_bytes} bytes", fields=['image'])

        self.ensure_directory()

        for _ in range(MAX_NAME_ATTEMPTS):
            filename = self.generate_filename(payload.original_name)
            file_path = self.get_file_path(filename)
            try:
                # 'x' refuses to open a path that already exists
                async with aiofiles.open(file_path, 'xb') as f:
                    await f.write(payload.data)
            except FileExistsError:
                continue
            except asyncio.CancelledError:
                # drop the partly written file when the create is aborted mid-write
                if os.path.exists(file_path):
                    os.remove(file_path)
                raise
            except OSError as e:
                if os.path.exists(file_path):
                    os.remove(file_path)
                logger.error({'msg': 'upload_write_failed', 'path': file_path, 'error': str(e)})
                raise UploadError(f"Error saving file: {e}") from e
            logger.info({'msg': 'upload_saved', 'file': filename, 'bytes': len(payload.data)})
            return self.get_public_url(filename)

        raise UploadError('Could not allocate a unique upload filename')

    def path_for_url(self, url: str) -> Optional[str]:
        """Map a URL produced by save() back to its file path"""
        prefix = self.url_prefix + '/'
        if not url or not url.startswith(prefix):
            return None
        filename = url[len(prefix):]
        if not filename or filename != os.path.basename(filename) or filename in ('.', '..'):
            return None
        return self.get_file_path(filename)

    async def remove(self, url: str) -> bool:
        """Delete a stored upload by URL. Returns False if nothing was removed."""
        file_path = self.path_for_url(url)
        if file_path is None:
            return False
        try:
            os.remove(file_path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning({'msg': 'upload_remove_failed', 'path': file_path, 'error': str(e)})
            return False
