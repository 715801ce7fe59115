import os

MONGO_URL = os.getenv('MONGO_URL', 'mongodb://mongo:27017')
MONGO_DB = os.getenv('MONGO_DB', 'postboard')
POSTS_COLLECTION = os.getenv('POSTS_COLLECTION', 'posts')

# Uploaded images are written here and served back under UPLOADS_URL_PREFIX
UPLOAD_DIR = os.getenv('POSTBOARD_UPLOAD_DIR', 'static/uploads')
UPLOADS_URL_PREFIX = '/uploads'
MAX_UPLOAD_BYTES = int(os.getenv('POSTBOARD_MAX_UPLOAD_BYTES', str(5 * 1024 * 1024)))

# Upper bound in seconds for upload+insert on the create path; unset means none
_create_timeout = os.getenv('POSTBOARD_CREATE_TIMEOUT')
CREATE_TIMEOUT = float(_create_timeout) if _create_timeout else None

_metrics_port = os.getenv('POSTBOARD_METRICS_PORT')
METRICS_PORT = int(_metrics_port) if _metrics_port else None

CORS_ORIGINS = [o.strip() for o in os.getenv('CORS_ORIGINS', '*').split(',') if o.strip()]
