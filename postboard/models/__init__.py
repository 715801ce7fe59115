from .. import config
from .posts import PostStore, parse_post_id  # noqa: F401


def get_posts_collection(client, db_name: str = config.MONGO_DB, collection_name: str = config.POSTS_COLLECTION):
    """Resolve the posts collection from a motor client"""
    return client[db_name][collection_name]
