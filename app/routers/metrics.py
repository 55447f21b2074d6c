from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.schemas import MetricsResponse
from app.services import diary_service

# Mounted ahead of the diary router so "metrics" is not read as a diary id.
router = APIRouter(prefix="/api/diary/metrics", tags=["metrics"])

@router.get("", response_model=MetricsResponse)
async def get_metrics(db: AsyncSession = Depends(get_db)):
    return await diary_service.count_diaries(db)
