import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidDocument, InvalidId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from ..errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

# Errors a write can raise: driver failures, plus BSON encoding of documents
# it cannot represent (e.g. a string holding a lone surrogate)
WRITE_ERRORS = (PyMongoError, InvalidDocument, ValueError)

# Mutable fields on a post document; _id and timestamps are managed here
POST_FIELDS = ('title', 'content', 'author', 'image_url')


def utcnow() -> datetime:
    # BSON dates keep millisecond precision, so trim to match what reads return
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def parse_post_id(post_id: Any) -> ObjectId:
    if isinstance(post_id, ObjectId):
        return post_id
    try:
        return ObjectId(str(post_id))
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid post id: {post_id!r}", fields=['id'])


class PostStore:
    """Post documents in a single MongoDB collection"""

    def __init__(self, collection):
        self.collection = collection

    async def ensure_indexes(self):
        try:
            await self.collection.create_index([('created_at', DESCENDING)], name='created_at_desc')
        except PyMongoError as e:
            raise StorageError(f"Index creation failed: {e}") from e

    async def list_all(self) -> List[Dict[str, Any]]:
        """Every post, newest first; equal timestamps fall back to insertion order"""
        try:
            cursor = self.collection.find({}).sort([('created_at', DESCENDING), ('_id', DESCENDING)])
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error({'msg': 'post_list_failed', 'error': str(e)})
            raise StorageError('Failed to fetch posts') from e

    async def get(self, oid: ObjectId) -> Optional[Dict[str, Any]]:
        try:
            return await self.collection.find_one({'_id': oid})
        except PyMongoError as e:
            logger.error({'msg': 'post_get_failed', 'id': str(oid), 'error': str(e)})
            raise StorageError('Failed to fetch post') from e

    async def insert(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        now = utcnow()
        doc = {k: v for k, v in fields.items() if k in POST_FIELDS and v is not None}
        doc['created_at'] = now
        doc['updated_at'] = now
        try:
            result = await self.collection.insert_one(doc)
        except WRITE_ERRORS as e:
            logger.error({'msg': 'post_insert_failed', 'error': str(e)})
            raise StorageError('Failed to create post') from e
        doc['_id'] = result.inserted_id
        return doc

    async def update(self, oid: ObjectId, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        changes = {k: v for k, v in fields.items() if k in POST_FIELDS}
        changes['updated_at'] = utcnow()
        try:
            return await self.collection.find_one_and_update(
                {'_id': oid},
                {'$set': changes},
                return_document=ReturnDocument.AFTER,
            )
        except WRITE_ERRORS as e:
            logger.error({'msg': 'post_update_failed', 'id': str(oid), 'error': str(e)})
            raise StorageError('Failed to update post') from e

    async def delete(self, oid: ObjectId) -> Optional[Dict[str, Any]]:
        """Remove a post and return the removed document, or None if it did not exist"""
        try:
            return await self.collection.find_one_and_delete({'_id': oid})
        except PyMongoError as e:
            logger.error({'msg': 'post_delete_failed', 'id': str(oid), 'error': str(e)})
            raise StorageError('Failed to delete post') from e
