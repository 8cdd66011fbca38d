# devevents/core/config.py
from devevents.core.settings import settings

MONGO_URI = settings.MONGO_URI
MONGO_DB_NAME = settings.MONGO_DB_NAME
MONGO_TIMEOUT_MS = settings.MONGO_TIMEOUT_MS
AWS_ACCESS_KEY_ID = settings.AWS_ACCESS_KEY_ID
AWS_SECRET_ACCESS_KEY = settings.AWS_SECRET_ACCESS_KEY
AWS_REGION = settings.AWS_REGION
MEDIA_S3_BUCKET = settings.MEDIA_S3_BUCKET
MEDIA_FOLDER = settings.MEDIA_FOLDER
MEDIA_UPLOAD_TIMEOUT_SECONDS = settings.MEDIA_UPLOAD_TIMEOUT_SECONDS
MEDIA_PUBLIC_BASE_URL = settings.MEDIA_PUBLIC_BASE_URL
CORS_ORIGINS = settings.CORS_ORIGINS
LOG_LEVEL = settings.LOG_LEVEL
