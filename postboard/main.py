import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pythonjsonlogger import jsonlogger

from . import config
from .core import init_metrics, mongo_startup, shutdown_connections
from .crud import PostService
from .errors import NotFoundError, PostboardError, UploadError, ValidationError
from .file_storage import UploadSink
from .models import PostStore, get_posts_collection
from .routes import router, view_router

# setup structured logging
logger = logging.getLogger('postboard')
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)

# generic messages for 500s; details only go to the log
FAILURE_MESSAGES = {
    'GET': 'Failed to fetch posts',
    'POST': 'Failed to create post',
    'PUT': 'Failed to update post',
    'DELETE': 'Failed to delete post',
}


def create_app(collection=None, upload_dir: Optional[str] = None,
               create_timeout: Optional[float] = config.CREATE_TIMEOUT) -> FastAPI:
    """Build the application.

    Passing a collection skips the MongoDB connection at startup, which is
    how tests run against an in-memory store.
    """
    app = FastAPI(title="Postboard API", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    uploads = UploadSink(upload_dir or config.UPLOAD_DIR)

    app.state.uploads = uploads
    app.state.mongo_client = None
    app.state.post_service = None
    if collection is not None:
        app.state.post_service = PostService(PostStore(collection), uploads, create_timeout)

    app.include_router(router, prefix="/api")
    app.include_router(view_router)
    app.mount(config.UPLOADS_URL_PREFIX, StaticFiles(directory=uploads.upload_dir, check_dir=False), name='uploads')

    @app.get('/healthz')
    async def healthz():
        return {'status': 'ok'}

    @app.middleware('http')
    async def log_requests(request: Request, call_next):
        logger.info({'msg': 'request_start', 'method': request.method, 'path': request.url.path})
        response = await call_next(request)
        logger.info({'msg': 'request_end', 'status': response.status_code})
        return response

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        content = {'error': exc.message}
        if exc.fields:
            content['fields'] = exc.fields
        return JSONResponse(status_code=400, content=content)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={'error': exc.message})

    @app.exception_handler(PostboardError)
    async def failure_handler(request: Request, exc: PostboardError):
        logger.error({'msg': 'request_failed', 'method': request.method, 'path': request.url.path,
                      'error_type': type(exc).__name__, 'error': exc.message})
        message = FAILURE_MESSAGES.get(request.method, 'Internal Server Error')
        return JSONResponse(status_code=500, content={'error': message})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception({'msg': 'request_unhandled', 'method': request.method, 'path': request.url.path})
        message = FAILURE_MESSAGES.get(request.method, 'Internal Server Error')
        return JSONResponse(status_code=500, content={'error': message})

    @app.on_event("startup")
    async def startup():
        if config.METRICS_PORT:
            init_metrics(config.METRICS_PORT)
        try:
            uploads.ensure_directory()
        except UploadError as e:
            # creating a post with an image will fail until this is fixed
            logger.warning({'msg': 'upload_dir_unavailable', 'error': e.message})
        if app.state.post_service is not None:
            return
        # Don't block the app from starting if Mongo is down; requests will 500 until it is back
        client = None
        try:
            client = await mongo_startup()
            store = PostStore(get_posts_collection(client))
            await store.ensure_indexes()
        except Exception as e:
            logger.error({'msg': 'mongo_init_failed', 'error': str(e)})
            shutdown_connections(client)
            return
        app.state.mongo_client = client
        app.state.post_service = PostService(store, uploads, create_timeout)

    @app.on_event("shutdown")
    async def shutdown():
        shutdown_connections(app.state.mongo_client)

    return app


app = create_app()
