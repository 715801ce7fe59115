import asyncio
import logging

from motor.motor_asyncio import AsyncIOMotorClient
from prometheus_client import Counter, start_http_server

from . import config

logger = logging.getLogger(__name__)

POSTS_CREATED = Counter('postboard_posts_created_total', 'Posts created')
POSTS_UPDATED = Counter('postboard_posts_updated_total', 'Posts updated')
POSTS_DELETED = Counter('postboard_posts_deleted_total', 'Posts deleted')
UPLOADS_STORED = Counter('postboard_uploads_stored_total', 'Image uploads written to disk')


def init_metrics(port: int):
    """Initialize Prometheus metrics server"""
    try:
        start_http_server(port)
        logger.info(f"Prometheus metrics server started on port {port}")
    except Exception as e:
        logger.warning(f'Prometheus start failed: {e}')


async def mongo_startup(mongo_url: str = config.MONGO_URL, max_retries: int = 3, retry_delay: float = 3):
    """Open the MongoDB client, retrying a few times before giving up"""
    for attempt in range(max_retries):
        client = None
        try:
            logger.info(f"Attempting to connect to MongoDB: {mongo_url} (attempt {attempt + 1}/{max_retries})")

            client = AsyncIOMotorClient(
                mongo_url,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=5000,
                socketTimeoutMS=5000,
                maxPoolSize=50,
                minPoolSize=5,
                retryWrites=True,
                retryReads=True
            )

            # Test the connection
            await client.admin.command('ping')

            logger.info("MongoDB connected successfully")
            return client

        except Exception as e:
            logger.warning(f'MongoDB startup attempt {attempt + 1} failed: {e}')
            if client is not None:
                client.close()

            if attempt < max_retries - 1:
                logger.info(f"Retrying MongoDB connection in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
            else:
                logger.error("Failed to connect to MongoDB after all retries")
                raise


def shutdown_connections(client):
    """Close the MongoDB client opened at startup"""
    logger.info("Shutting down connections...")
    if client is None:
        return
    try:
        client.close()
        logger.info("MongoDB connection closed")
    except Exception as e:
        logger.error(f"Error closing MongoDB connection: {e}")
