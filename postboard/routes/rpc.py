"""
JSON-RPC 2.0 procedure router for posts.

Every method takes the post service and the request's `params` and returns
a JSON-ready result. Errors raised by the service are mapped to JSON-RPC
error objects here, so handlers never build error responses themselves.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError as SchemaError

from ..crud import PostService, get_post_service
from ..errors import NotFoundError, PostboardError, ValidationError, from_schema_error
from ..file_storage import decode_base64_upload
from ..schemas.posts import RpcPostCreateIn, RpcPostIdIn, RpcPostUpdateIn

logger = logging.getLogger(__name__)

router = APIRouter()

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
NOT_FOUND = -32004

Handler = Callable[[PostService, Any], Awaitable[Any]]


def _parse(model: type, params: Any) -> BaseModel:
    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise ValidationError('params must be an object')
    try:
        return model.model_validate(params)
    except SchemaError as exc:
        raise from_schema_error(exc, 'Invalid params')


def _post_id(params: Any) -> str:
    """Methods keyed by id accept a bare id, a one-item list or {"id": ...}"""
    if isinstance(params, list) and len(params) == 1:
        params = params[0]
    if isinstance(params, str):
        return params
    return _parse(RpcPostIdIn, params).id


async def handle_get_all(service: PostService, params: Any):
    return [p.to_wire() for p in await service.list_posts()]


async def handle_get_by_id(service: PostService, params: Any):
    post = await service.get_post(_post_id(params))
    return post.to_wire()


async def handle_create(service: PostService, params: Any):
    payload = _parse(RpcPostCreateIn, params)
    upload = decode_base64_upload(payload.image_base64, payload.image_name)
    post = await service.create_post(payload.title, payload.content, payload.author, upload)
    return post.to_wire()


async def handle_update(service: PostService, params: Any):
    payload = _parse(RpcPostUpdateIn, params)
    fields = payload.model_dump(exclude={'id'})
    post = await service.update_post(payload.id, fields)
    return post.to_wire()


async def handle_delete(service: PostService, params: Any):
    deleted_id = await service.delete_post(_post_id(params))
    return {'id': deleted_id}


RPC_HANDLERS: Dict[str, Handler] = {
    'posts.getAll': handle_get_all,
    'posts.getById': handle_get_by_id,
    'posts.create': handle_create,
    'posts.update': handle_update,
    'posts.delete': handle_delete,
}


def _rpc_error(req_id: Any, code: int, message: str, status_code: int, data: Optional[Any] = None) -> JSONResponse:
    error = {'code': code, 'message': message}
    if data is not None:
        error['data'] = data
    return JSONResponse(content={'jsonrpc': '2.0', 'error': error, 'id': req_id}, status_code=status_code)


@router.get('')
async def list_methods():
    return {'methods': sorted(RPC_HANDLERS)}


@router.post('')
async def rpc(request: Request, service: PostService = Depends(get_post_service)):
    try:
        body = await request.json()
    except ValueError:
        return _rpc_error(None, PARSE_ERROR, 'Parse error', 400)

    if not isinstance(body, dict):
        return _rpc_error(None, INVALID_REQUEST, 'Invalid Request', 400, 'request must be an object')
    req_id = body.get('id')
    if body.get('jsonrpc') != '2.0':
        return _rpc_error(req_id, INVALID_REQUEST, 'Invalid Request', 400, "jsonrpc field must be '2.0'")
    method = body.get('method')
    if not method or not isinstance(method, str):
        return _rpc_error(req_id, INVALID_REQUEST, 'Invalid Request', 400, 'method field is required')

    handler = RPC_HANDLERS.get(method)
    if handler is None:
        return _rpc_error(req_id, METHOD_NOT_FOUND, 'Method not found', 404, f"Method '{method}' not supported")

    logger.info({'msg': 'rpc_call', 'method': method})
    try:
        result = await handler(service, body.get('params'))
    except ValidationError as exc:
        return _rpc_error(req_id, INVALID_PARAMS, exc.message, 400, {'fields': exc.fields})
    except NotFoundError as exc:
        return _rpc_error(req_id, NOT_FOUND, exc.message, 404, {'id': exc.post_id})
    except PostboardError as exc:
        logger.error({'msg': 'rpc_failed', 'method': method, 'error': exc.message})
        return _rpc_error(req_id, INTERNAL_ERROR, 'Internal error', 500)
    except Exception:
        logger.exception({'msg': 'rpc_unhandled', 'method': method})
        return _rpc_error(req_id, INTERNAL_ERROR, 'Internal error', 500)

    return JSONResponse(content={'jsonrpc': '2.0', 'result': result, 'id': req_id})
