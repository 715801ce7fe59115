import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi import Request

from . import config
from .core import POSTS_CREATED, POSTS_DELETED, POSTS_UPDATED, UPLOADS_STORED
from .errors import NotFoundError, StorageError, ValidationError
from .file_storage import UploadPayload, UploadSink
from .models.posts import PostStore, parse_post_id
from .schemas.posts import PostOut

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('title', 'content', 'author')
TITLE_MAX_LENGTH = 100


def _clean(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"Field '{name}' must be a string", fields=[name])
    try:
        value.encode('utf-8')
    except UnicodeEncodeError:
        raise ValidationError(f"Field '{name}' must be valid UTF-8 text", fields=[name])
    # content keeps its whitespace; title and author are stored trimmed
    return value if name == 'content' else value.strip()


def validate_post_fields(fields: Dict[str, Any], partial: bool = False) -> Dict[str, str]:
    """Check title/content/author and return the cleaned values.

    With partial=True only the supplied (non-None) fields are checked.
    """
    missing = []
    cleaned = {}
    for name in REQUIRED_FIELDS:
        value = fields.get(name)
        if value is None:
            if not partial:
                missing.append(name)
            continue
        value = _clean(name, value)
        if not value.strip():
            missing.append(name)
            continue
        cleaned[name] = value
    if missing:
        raise ValidationError('Missing required fields', fields=missing)
    if len(cleaned.get('title', '')) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title cannot be more than {TITLE_MAX_LENGTH} characters", fields=['title'])
    return cleaned


class PostService:
    """CRUD operations over the post store, with optional image upload"""

    def __init__(self, store: PostStore, uploads: UploadSink, create_timeout: Optional[float] = config.CREATE_TIMEOUT):
        self.store = store
        self.uploads = uploads
        self.create_timeout = create_timeout

    async def list_posts(self) -> List[PostOut]:
        docs = await self.store.list_all()
        return [PostOut.from_document(d) for d in docs]

    async def get_post(self, post_id: str) -> PostOut:
        doc = await self.store.get(parse_post_id(post_id))
        if doc is None:
            raise NotFoundError(post_id)
        return PostOut.from_document(doc)

    async def create_post(self, title: Optional[str], content: Optional[str], author: Optional[str],
                          upload: Optional[UploadPayload] = None) -> PostOut:
        fields = validate_post_fields({'title': title, 'content': content, 'author': author})
        if self.create_timeout:
            try:
                doc = await asyncio.wait_for(self._store_post(fields, upload), timeout=self.create_timeout)
            except asyncio.TimeoutError:
                logger.error({'msg': 'post_create_timeout', 'timeout': self.create_timeout})
                raise StorageError('Creating the post took too long')
        else:
            doc = await self._store_post(fields, upload)
        POSTS_CREATED.inc()
        logger.info({'msg': 'post_created', 'id': str(doc['_id']), 'has_image': 'image_url' in doc})
        return PostOut.from_document(doc)

    async def _store_post(self, fields: Dict[str, str], upload: Optional[UploadPayload]) -> Dict[str, Any]:
        image_url = await self.uploads.save(upload)
        if image_url:
            UPLOADS_STORED.inc()
        try:
            return await self.store.insert({**fields, 'image_url': image_url})
        except BaseException:
            # the post and its image are created together or not at all
            if image_url:
                await self.uploads.remove(image_url)
            raise

    async def update_post(self, post_id: str, fields: Dict[str, Any]) -> PostOut:
        oid = parse_post_id(post_id)
        changes = validate_post_fields(fields, partial=True)
        if not changes:
            doc = await self.store.get(oid)
        else:
            doc = await self.store.update(oid, changes)
        if doc is None:
            raise NotFoundError(post_id)
        if changes:
            POSTS_UPDATED.inc()
            logger.info({'msg': 'post_updated', 'id': post_id, 'fields': sorted(changes)})
        return PostOut.from_document(doc)

    async def delete_post(self, post_id: str) -> str:
        doc = await self.store.delete(parse_post_id(post_id))
        if doc is None:
            raise NotFoundError(post_id)
        if doc.get('image_url'):
            await self.uploads.remove(doc['image_url'])
        POSTS_DELETED.inc()
        logger.info({'msg': 'post_deleted', 'id': post_id})
        return str(doc['_id'])


def get_post_service(request: Request) -> PostService:
    """FastAPI dependency: the service built once at startup"""
    service = getattr(request.app.state, 'post_service', None)
    if service is None:
        raise StorageError('Post store is not connected')
    return service
