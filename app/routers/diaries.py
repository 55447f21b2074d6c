from typing import Annotated

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.dependencies import CurrentUser, get_current_user
from app.schemas import DataResponse, DiaryCreate, DiaryDetail, DiaryResponse, DiaryUpdate, ErrorResponse
from app.services import diary_service

# Ids beyond the int4 column range are rejected here; zero is left to the
# service, which answers it with 400.
DiaryId = Annotated[int, Path(le=2_147_483_647)]

router = APIRouter(
    prefix="/api/diary",
    tags=["diary"],
    responses={401: {"model": ErrorResponse}},
)

@router.post("", status_code=201, response_model=DataResponse[DiaryResponse])
async def create_diary(
    data: DiaryCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    diary = await diary_service.create_diary(db, user.user_id, data)
    return {"data": diary}

@router.get(
    "/{diary_id}",
    response_model=DataResponse[DiaryDetail],
    responses={404: {"model": ErrorResponse}},
)
async def read_diary(
    diary_id: DiaryId,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return {"data": await diary_service.read_diary_detail(db, diary_id, user.token)}

@router.patch(
    "/{diary_id}",
    status_code=204,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_diary(
    diary_id: DiaryId,
    data: DiaryUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await diary_service.update_diary(db, diary_id, user.user_id, data)

@router.delete(
    "/{diary_id}",
    status_code=204,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_diary(
    diary_id: DiaryId,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await diary_service.delete_diary(db, diary_id, user.user_id)

@router.post(
    "/{diary_id}/like",
    status_code=201,
    response_model=DataResponse[None],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def like_diary(
    diary_id: DiaryId,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await diary_service.create_diary_like(db, diary_id, user.user_id)
    return {"data": None}

@router.delete(
    "/{diary_id}/like",
    status_code=204,
    responses={409: {"model": ErrorResponse}},
)
async def unlike_diary(
    diary_id: DiaryId,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await diary_service.delete_diary_like(db, diary_id, user.user_id)
