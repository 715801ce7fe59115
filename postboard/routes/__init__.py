from fastapi import APIRouter
from .posts import router as posts_router
from .rpc import router as rpc_router
from .view import router as view_router

router = APIRouter()
router.include_router(posts_router, prefix='/posts', tags=['posts'])
router.include_router(rpc_router, prefix='/rpc', tags=['rpc'])

__all__ = ['router', 'view_router']
