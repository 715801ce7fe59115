from typing import List

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as SchemaError
from starlette.datastructures import UploadFile

from ..crud import PostService, get_post_service
from ..errors import ValidationError, from_schema_error
from ..file_storage import read_upload_file
from ..schemas.posts import PostCreateIn, PostDeletedOut, PostOut, PostUpdateIn

router = APIRouter()

FORM_CONTENT_TYPES = ('multipart/form-data', 'application/x-www-form-urlencoded')


async def _read_json(request: Request):
    try:
        return await request.json()
    except ValueError:
        raise ValidationError('Invalid JSON body')


@router.get('', response_model=List[PostOut], response_model_exclude_none=True)
async def list_posts(service: PostService = Depends(get_post_service)):
    return await service.list_posts()


@router.post('', status_code=201, response_model=PostOut, response_model_exclude_none=True)
async def create(request: Request, service: PostService = Depends(get_post_service)):
    """Create a post from a JSON body or a multipart form with an optional `image` file"""
    content_type = request.headers.get('content-type', '')
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        image = form.get('image')
        upload = await read_upload_file(image) if isinstance(image, UploadFile) else None
        fields = {name: form.get(name) for name in ('title', 'content', 'author')}
        # a stray file in a text field is treated as missing
        fields = {k: v if isinstance(v, str) else None for k, v in fields.items()}
    else:
        body = await _read_json(request)
        try:
            payload = PostCreateIn.model_validate(body)
        except SchemaError as exc:
            raise from_schema_error(exc)
        fields = payload.model_dump()
        upload = None
    return await service.create_post(fields['title'], fields['content'], fields['author'], upload)


@router.get('/{post_id}', response_model=PostOut, response_model_exclude_none=True)
async def get(post_id: str, service: PostService = Depends(get_post_service)):
    return await service.get_post(post_id)


@router.put('/{post_id}', response_model=PostOut, response_model_exclude_none=True)
async def update(post_id: str, request: Request, service: PostService = Depends(get_post_service)):
    body = await _read_json(request)
    try:
        payload = PostUpdateIn.model_validate(body)
    except SchemaError as exc:
        raise from_schema_error(exc)
    return await service.update_post(post_id, payload.model_dump())


@router.delete('/{post_id}', response_model=PostDeletedOut)
async def delete(post_id: str, service: PostService = Depends(get_post_service)):
    deleted_id = await service.delete_post(post_id)
    return PostDeletedOut(id=deleted_id)
