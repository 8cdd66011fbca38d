import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from devevents.api.errors import register_exception_handlers
from devevents.api.v1.endpoints import bookings, events, health
from devevents.core.config import (
    AWS_ACCESS_KEY_ID,
    AWS_REGION,
    AWS_SECRET_ACCESS_KEY,
    CORS_ORIGINS,
    LOG_LEVEL,
    MEDIA_FOLDER,
    MEDIA_PUBLIC_BASE_URL,
    MEDIA_S3_BUCKET,
    MEDIA_UPLOAD_TIMEOUT_SECONDS,
    MONGO_DB_NAME,
    MONGO_TIMEOUT_MS,
    MONGO_URI,
)
from devevents.db.repository.bookings import BookingsRepository
from devevents.db.repository.events import EventsRepository
from devevents.db.session import close_client, create_client, ensure_collections_exist
from devevents.services.bookings import BookingsService
from devevents.services.events import EventsService
from devevents.utils.s3 import S3MediaStore

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="DevEvents",
    description="Developer events listing, detail pages and bookings",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.on_event("startup")
async def startup_event():
    client = create_client(MONGO_URI, MONGO_TIMEOUT_MS)
    db = client[MONGO_DB_NAME]

    # Ensure collections and indexes exist during application startup
    await ensure_collections_exist(db)

    events_repo = EventsRepository(db["events"])
    bookings_repo = BookingsRepository(db["bookings"])
    media_store = S3MediaStore(
        bucket=MEDIA_S3_BUCKET,
        region=AWS_REGION,
        folder=MEDIA_FOLDER,
        aws_access_key_id=AWS_ACCESS_KEY_ID,
        aws_secret_access_key=AWS_SECRET_ACCESS_KEY,
        public_base_url=MEDIA_PUBLIC_BASE_URL,
    )

    app.state.mongo_client = client
    app.state.db = db
    app.state.events_service = EventsService(
        events_repo,
        bookings_repo,
        media_store,
        upload_timeout=MEDIA_UPLOAD_TIMEOUT_SECONDS,
    )
    app.state.bookings_service = BookingsService(bookings_repo, events_repo)
    logger.info("Connected to MongoDB database %s", MONGO_DB_NAME)


@app.on_event("shutdown")
async def shutdown_event():
    client = getattr(app.state, "mongo_client", None)
    if client is not None:
        close_client(client)


app.include_router(events.router, prefix="/events", tags=["Events"])
app.include_router(bookings.router, prefix="/events", tags=["Bookings"])
app.include_router(health.router, prefix="/health", tags=["Health"])
