from typing import Iterable, List, Optional


class PostboardError(Exception):
    """Base class for errors raised by the post service"""
    message = 'Unexpected error'

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class ValidationError(PostboardError):
    """Client supplied missing or malformed input. Nothing was written."""
    message = 'Missing required fields'

    def __init__(self, message: Optional[str] = None, fields: Iterable[str] = ()):
        super().__init__(message)
        self.fields: List[str] = list(fields)


class NotFoundError(PostboardError):
    message = 'Post not found'

    def __init__(self, post_id: Optional[str] = None, message: Optional[str] = None):
        super().__init__(message)
        self.post_id = post_id


class StorageError(PostboardError):
    """Document store unreachable or write rejected"""
    message = 'Storage failure'


class UploadError(PostboardError):
    """Upload directory or file could not be written"""
    message = 'Upload failure'


def from_schema_error(exc, message: str = 'Invalid request body') -> ValidationError:
    """Convert a pydantic validation error into a ValidationError naming the bad fields"""
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get('loc', ()) if part != 'body']
        if loc and loc[0] not in fields:
            fields.append(loc[0])
    return ValidationError(message, fields=fields)
