# devevents/core/settings.py
from pydantic_settings import BaseSettings
from typing import List, Optional
import os
from dotenv import load_dotenv
load_dotenv()  # This will load variables from a .env file in the current directory


class Settings(BaseSettings):
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB_NAME: str = os.getenv("MONGO_DB_NAME", "devevents")
    MONGO_TIMEOUT_MS: int = 5000
    AWS_ACCESS_KEY_ID: Optional[str] = os.getenv("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY: Optional[str] = os.getenv("AWS_SECRET_ACCESS_KEY")
    AWS_REGION: str = "ap-south-1"
    MEDIA_S3_BUCKET: str = os.getenv("MEDIA_S3_BUCKET", "devevents-media")
    MEDIA_FOLDER: str = "DevEvent"
    MEDIA_UPLOAD_TIMEOUT_SECONDS: float = 30.0
    MEDIA_PUBLIC_BASE_URL: Optional[str] = None
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"


settings = Settings()
