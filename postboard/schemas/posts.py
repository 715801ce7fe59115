from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

# Input fields are all optional at the schema level so that a missing
# title/content/author surfaces as the service's "Missing required fields"
# error instead of a framework 422.

class PostCreateIn(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None

class PostUpdateIn(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None

class RpcPostCreateIn(PostCreateIn):
    image_base64: Optional[str] = Field(default=None, alias='imageBase64')
    image_name: Optional[str] = Field(default=None, alias='imageName')

    model_config = ConfigDict(populate_by_name=True)

class RpcPostUpdateIn(PostUpdateIn):
    id: str

class RpcPostIdIn(BaseModel):
    id: str


def _as_utc(value: datetime) -> datetime:
    # motor hands back naive datetimes that are already UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PostOut(BaseModel):
    id: str
    title: str
    content: str
    author: str
    image_url: Optional[str] = Field(default=None, alias='imageUrl')
    created_at: datetime = Field(alias='createdAt')
    updated_at: datetime = Field(alias='updatedAt')

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> 'PostOut':
        return cls(
            id=str(doc['_id']),
            title=doc['title'],
            content=doc['content'],
            author=doc['author'],
            image_url=doc.get('image_url'),
            created_at=_as_utc(doc['created_at']),
            updated_at=_as_utc(doc['updated_at']),
        )

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys; imageUrl is left out when there is no image"""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)

class PostDeletedOut(BaseModel):
    id: str
