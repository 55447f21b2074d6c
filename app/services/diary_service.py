"""
Diary service — business logic for the Diary aggregate and its likes.

Design notes
------------
- Every function takes the request's ``AsyncSession`` as the unit of
  work.  Functions flush but never commit or roll back; ``get_db`` owns
  the transaction boundary.
- Counter changes and cascading deletes are issued as bulk statements
  (``likes = likes + 1``) so concurrent likes never lose an update.
  Bulk statements bypass the identity map, so diary reads always
  repopulate from the database.
- The existence check in ``create_diary_like`` (the increment's row
  count) is not serialized against a concurrent ``delete_diary``; under
  READ COMMITTED a like can race a delete of the same diary.
- Errors are logged where they leave the service and re-raised as-is.
"""
import functools
import logging
from typing import Any

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.author_client import AuthorClient, author_client
from app.exceptions import (
    BadRequestError,
    ConflictError,
    DiaryServiceError,
    ForbiddenError,
    NotFoundError,
)
from app.models import Diary, DiaryLike
from app.schemas import DiaryCreate, DiaryUpdate

logger = logging.getLogger(__name__)

_BULK = {"synchronize_session": False}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _logged(fn):
    """Log any error leaving *fn*, then re-raise it unchanged."""

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except DiaryServiceError as exc:
            logger.warning("%s: %s %s", fn.__name__, exc.message, exc.context)
            raise
        except Exception:
            logger.exception("%s failed", fn.__name__)
            raise

    return wrapper


def _require_ids(**ids: Any) -> None:
    missing = [name for name, value in ids.items() if not value]
    if missing:
        raise BadRequestError("Request values are not valid", context={"missing": missing})


def _diary_to_dict(diary: Diary) -> dict:
    return {
        "diary_id": diary.diary_id,
        "user_id": diary.user_id,
        "title": diary.title,
        "content": diary.content,
        "image_url": diary.image_url,
        "likes": diary.likes,
        "created_at": diary.created_at.isoformat() if diary.created_at else None,
        "updated_at": diary.updated_at.isoformat() if diary.updated_at else None,
    }


async def _find_diary(db: AsyncSession, diary_id: int) -> Diary | None:
    q = (
        select(Diary)
        .where(Diary.diary_id == diary_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    return result.scalar_one_or_none()


async def _has_liked(db: AsyncSession, diary_id: int, user_id: int) -> bool:
    result = await db.execute(
        select(DiaryLike.user_id).where(
            DiaryLike.diary_id == diary_id, DiaryLike.user_id == user_id
        )
    )
    return result.first() is not None


async def _is_same_user(db: AsyncSession, current_user_id: int, diary_id: int) -> bool:
    """
    True when *current_user_id* owns *diary_id*.

    Ids are plain ints by the time they get here (the auth dependency
    normalises the token claim), so the comparison is exact.
    """
    diary = await _find_diary(db, diary_id)
    if diary is None:
        raise NotFoundError("diary", diary_id)
    return diary.user_id == current_user_id


# ---------------------------------------------------------------------------
# Diary CRUD
# ---------------------------------------------------------------------------

@_logged
async def create_diary(db: AsyncSession, user_id: int, data: DiaryCreate) -> dict:
    """Create a diary owned by *user_id* and return the persisted record."""
    _require_ids(user_id=user_id)

    diary = Diary(
        user_id=user_id,
        title=data.title,
        content=data.content,
        image_url=data.image_url,
        likes=0,
    )
    db.add(diary)
    await db.flush()
    await db.refresh(diary)

    logger.info("Diary %s created by user %s", diary.diary_id, user_id)
    return _diary_to_dict(diary)


@_logged
async def update_diary(
    db: AsyncSession, diary_id: int, user_id: int, data: DiaryUpdate
) -> None:
    """
    Apply the fields explicitly set in *data* to the caller's diary.

    Raises ForbiddenError for a non-owner and BadRequestError when the
    patch is empty or the UPDATE matched no row.
    """
    if not await _is_same_user(db, user_id, diary_id):
        raise ForbiddenError(
            "You do not have permission to edit this diary",
            context={"diary_id": diary_id, "user_id": user_id},
        )

    patch = data.model_dump(exclude_unset=True)
    nulls = [field for field in ("title", "content") if field in patch and patch[field] is None]
    if nulls:
        raise BadRequestError("Diary fields cannot be null", context={"fields": nulls})
    if not patch:
        raise BadRequestError("Diary update failed: nothing to update")

    result = await db.execute(
        update(Diary)
        .where(Diary.diary_id == diary_id)
        .values(**patch, updated_at=func.now())
        .execution_options(**_BULK)
    )
    if result.rowcount == 0:
        raise BadRequestError("Diary update failed: nothing updated", context={"diary_id": diary_id})


@_logged
async def delete_diary(db: AsyncSession, diary_id: int, user_id: int) -> None:
    """Delete the caller's diary together with every like it has received."""
    _require_ids(diary_id=diary_id, user_id=user_id)

    if not await _is_same_user(db, user_id, diary_id):
        raise ForbiddenError(
            "You do not have permission to delete this diary",
            context={"diary_id": diary_id, "user_id": user_id},
        )

    await db.execute(
        delete(DiaryLike).where(DiaryLike.diary_id == diary_id).execution_options(**_BULK)
    )
    result = await db.execute(
        delete(Diary).where(Diary.diary_id == diary_id).execution_options(**_BULK)
    )
    if result.rowcount == 0:
        raise BadRequestError("Diary delete failed: nothing deleted", context={"diary_id": diary_id})

    logger.info("Diary %s deleted by user %s", diary_id, user_id)


@_logged
async def read_diary_detail(
    db: AsyncSession,
    diary_id: int,
    token: str,
    client: AuthorClient | None = None,
) -> dict:
    """
    Return *diary_id* with its writer's profile under ``writer``.

    The profile comes from the user-service, called with the caller's
    own bearer *token*; the owner id itself is left out of the result.
    """
    diary = await _find_diary(db, diary_id)
    if diary is None:
        raise NotFoundError("diary", diary_id)

    writer = await (client or author_client).get_author(diary.user_id, token)

    data = _diary_to_dict(diary)
    del data["user_id"]
    data["writer"] = writer
    return data


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------

@_logged
async def create_diary_like(db: AsyncSession, diary_id: int, user_id: int) -> None:
    """Record that *user_id* likes *diary_id* and bump the counter."""
    _require_ids(diary_id=diary_id, user_id=user_id)

    if await _has_liked(db, diary_id, user_id):
        raise ConflictError(
            "You have already liked this diary",
            context={"diary_id": diary_id, "user_id": user_id},
        )

    result = await db.execute(
        update(Diary)
        .where(Diary.diary_id == diary_id)
        .values(likes=Diary.likes + 1)
        .execution_options(**_BULK)
    )
    if result.rowcount == 0:
        raise NotFoundError("diary", diary_id)

    try:
        await db.execute(insert(DiaryLike).values(diary_id=diary_id, user_id=user_id))
    except IntegrityError as exc:
        # Lost a race with an identical like from another request.
        raise ConflictError(
            "You have already liked this diary",
            context={"diary_id": diary_id, "user_id": user_id},
        ) from exc


@_logged
async def delete_diary_like(db: AsyncSession, diary_id: int, user_id: int) -> None:
    """Withdraw *user_id*'s like of *diary_id* and lower the counter."""
    _require_ids(diary_id=diary_id, user_id=user_id)

    result = await db.execute(
        delete(DiaryLike)
        .where(DiaryLike.diary_id == diary_id, DiaryLike.user_id == user_id)
        .execution_options(**_BULK)
    )
    if result.rowcount == 0:
        raise ConflictError(
            "The like was already cancelled or the diary does not exist",
            context={"diary_id": diary_id, "user_id": user_id},
        )

    await db.execute(
        update(Diary)
        .where(Diary.diary_id == diary_id)
        .values(likes=Diary.likes - 1)
        .execution_options(**_BULK)
    )


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

async def count_diaries(db: AsyncSession) -> dict:
    total_diaries = (await db.execute(select(func.count()).select_from(Diary))).scalar_one()
    total_likes = (await db.execute(select(func.count()).select_from(DiaryLike))).scalar_one()
    avg = total_likes / total_diaries if total_diaries > 0 else 0
    return {
        "total_diaries": total_diaries,
        "total_likes": total_likes,
        "avg_likes_per_diary": round(avg, 2),
    }
