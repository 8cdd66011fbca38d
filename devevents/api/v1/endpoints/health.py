import logging

from fastapi import APIRouter, HTTPException, Request

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def health(request: Request):
    try:
        await request.app.state.db.command("ping")
    except Exception as e:
        logger.error("Database ping failed: %s", e)
        raise HTTPException(status_code=503, detail="Database unavailable")
    return {"status": "ok"}
