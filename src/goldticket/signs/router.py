"""Sign endpoints: /api/signs."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.auth.dependencies import get_current_user, get_optional_user
from goldticket.database import get_session
from goldticket.db.models import Sign, User
from goldticket.signs.schemas import (
    AddOptionRequest,
    CommentRequest,
    SignCommentResponse,
    SignCreateRequest,
    SignDetailResponse,
    SignOptionResponse,
    SignResponse,
    VoteRequest,
    VoteResponse,
)
from goldticket.signs.service import (
    DuplicateOptionError,
    InvalidOptionError,
    InvalidSignError,
    SignCooldownError,
    SignNotFoundError,
    add_comment,
    add_option,
    cast_vote,
    create_sign,
    get_active_sign,
    get_user_vote,
    list_active_signs,
    vote_counts,
)

router = APIRouter(prefix="/api/signs", tags=["Signs"])


def _sign_response(sign: Sign, counts: dict[int, int]) -> SignResponse:
    options = [
        SignOptionResponse(index=o.position, text=o.text, votes=counts.get(o.position, 0))
        for o in sign.options
    ]
    return SignResponse(
        id=sign.id,
        owner_id=sign.owner_id,
        lat=sign.lat,
        lng=sign.lng,
        type=sign.type,
        message=sign.message,
        title=sign.title,
        description=sign.description,
        options=options,
        total_votes=sum(o.votes for o in options),
        created_at=sign.created_at,
        expires_at=sign.expires_at,
    )


async def _single_sign_response(db: AsyncSession, sign: Sign) -> SignResponse:
    counts = await vote_counts(db, [sign.id])
    return _sign_response(sign, counts.get(sign.id, {}))


@router.post("", response_model=SignResponse, status_code=201)
async def place_sign(
    body: SignCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SignResponse:
    try:
        sign = await create_sign(
            db,
            user.id,
            lat=body.lat,
            lng=body.lng,
            sign_type=body.type,
            message=body.message,
            title=body.title,
            description=body.description,
            options=body.options,
        )
    except InvalidSignError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except SignCooldownError as e:
        raise HTTPException(
            status_code=429,
            detail=f"You can place another sign at {e.retry_at.isoformat()}",
        ) from e
    response = _sign_response(sign, {})
    await db.commit()
    return response


@router.get("", response_model=list[SignResponse])
async def list_signs(db: AsyncSession = Depends(get_session)) -> list[SignResponse]:
    """All unexpired signs with vote tallies."""
    signs = await list_active_signs(db)
    counts = await vote_counts(db, [s.id for s in signs])
    return [_sign_response(s, counts.get(s.id, {})) for s in signs]


@router.get("/{sign_id}", response_model=SignDetailResponse)
async def sign_detail(
    sign_id: uuid.UUID,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
) -> SignDetailResponse:
    try:
        sign = await get_active_sign(db, sign_id, with_comments=True)
    except SignNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    base = await _single_sign_response(db, sign)
    return SignDetailResponse(
        **base.model_dump(),
        comments=[SignCommentResponse.model_validate(c) for c in sign.comments],
        my_vote=await get_user_vote(db, sign.id, user.id) if user is not None else None,
    )


@router.post("/{sign_id}/comments", response_model=SignCommentResponse, status_code=201)
async def comment_on_sign(
    sign_id: uuid.UUID,
    body: CommentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SignCommentResponse:
    try:
        comment = await add_comment(db, sign_id, user, body.text)
    except SignNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    response = SignCommentResponse.model_validate(comment)
    await db.commit()
    return response


@router.post("/{sign_id}/vote", response_model=VoteResponse)
async def vote_on_sign(
    sign_id: uuid.UUID,
    body: VoteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> VoteResponse:
    """Vote, change your vote, or take it back by voting for the same option again."""
    try:
        action = await cast_vote(db, sign_id, user.id, body.option_index)
        sign = await get_active_sign(db, sign_id)
    except SignNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidOptionError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    response = VoteResponse(action=action.value, sign=await _single_sign_response(db, sign))
    await db.commit()
    return response


@router.post("/{sign_id}/options", response_model=SignResponse, status_code=201)
async def add_poll_option(
    sign_id: uuid.UUID,
    body: AddOptionRequest,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SignResponse:
    try:
        await add_option(db, sign_id, body.text)
        sign = await get_active_sign(db, sign_id)
    except SignNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidSignError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except DuplicateOptionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    response = await _single_sign_response(db, sign)
    await db.commit()
    return response
