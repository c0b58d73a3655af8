import logging

from fastapi import APIRouter, Depends
from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from crdo.core.auth import AuthUser, get_current_user
from crdo.core.exceptions import ConflictError, NotFoundError, ValidationError
from crdo.core.time_utils import utcnow
from crdo.db import get_db
from crdo.models.friend import Friend
from crdo.models.user import User
from crdo.schemas.friend import (
    FriendAction,
    FriendRead,
    FriendRequestAnswered,
    FriendRequestCreate,
    FriendRequestRead,
    FriendRequestRespond,
    FriendRequestSent,
    FriendsList,
    FriendStatus,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/friends", tags=["friends"])


@router.post("/requests", response_model=FriendRequestSent)
def send_friend_request(
    payload: FriendRequestCreate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    email = payload.friend_email.strip().lower()
    if not email:
        raise ValidationError("Missing required field: friendEmail")

    friend = db.query(User).filter(func.lower(User.email) == email).first()
    if not friend:
        raise NotFoundError("User not found with this email")
    if friend.id == user.id:
        raise ValidationError("Cannot send friend request to yourself")

    existing = (
        db.query(Friend)
        .filter(
            or_(
                and_(Friend.user_id == user.id, Friend.friend_id == friend.id),
                and_(Friend.user_id == friend.id, Friend.friend_id == user.id),
            )
        )
        .filter(Friend.status.in_([FriendStatus.accepted.value, FriendStatus.pending.value]))
        .first()
    )
    if existing:
        if existing.status == FriendStatus.accepted.value:
            raise ConflictError("Already friends with this user")
        raise ConflictError("Friend request already pending")

    row = Friend(user_id=user.id, friend_id=friend.id, status=FriendStatus.pending.value)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Friend request %s sent from %s to %s", row.id, user.id, friend.id)

    return FriendRequestSent(
        message="Friend request sent successfully",
        friend_request=FriendRequestRead(
            id=row.id,
            user_id=row.user_id,
            friend_id=row.friend_id,
            status=row.status,
            requested_at=row.requested_at,
            responded_at=row.responded_at,
        ),
    )


@router.post("/requests/{request_id}/respond", response_model=FriendRequestAnswered)
def respond_to_friend_request(
    request_id: int,
    payload: FriendRequestRespond,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # Only the recipient can answer, and only once
    row = (
        db.query(Friend)
        .filter(
            Friend.id == request_id,
            Friend.friend_id == user.id,
            Friend.status == FriendStatus.pending.value,
        )
        .first()
    )
    if not row:
        raise NotFoundError("Friend request not found or already processed")

    new_status = (
        FriendStatus.accepted if payload.action == FriendAction.accept else FriendStatus.rejected
    )
    row.status = new_status.value
    row.responded_at = utcnow()
    db.commit()

    return FriendRequestAnswered(
        message=f"Friend request {payload.action.value}ed successfully",
        status=new_status,
    )


@router.get("", response_model=FriendsList)
def list_friends(
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    relationships = (
        db.query(Friend)
        .filter(or_(Friend.user_id == user.id, Friend.friend_id == user.id))
        .all()
    )
    other_ids = {r.friend_id if r.user_id == user.id else r.user_id for r in relationships}
    users = {u.id: u for u in db.query(User).filter(User.id.in_(list(other_ids))).all()} if other_ids else {}

    friends: list[FriendRead] = []
    pending: list[FriendRead] = []
    sent: list[FriendRead] = []
    for r in relationships:
        initiated = r.user_id == user.id
        other = users.get(r.friend_id if initiated else r.user_id)
        if not other:
            continue
        item = FriendRead(
            id=other.id,
            email=other.email,
            relationship_id=r.id,
            status=r.status,
            requested_at=r.requested_at,
            responded_at=r.responded_at,
        )
        if r.status == FriendStatus.accepted.value:
            friends.append(item)
        elif r.status == FriendStatus.pending.value:
            (sent if initiated else pending).append(item)

    return FriendsList(
        friends=friends,
        pending_requests=pending,
        sent_requests=sent,
        total_friends=len(friends),
        total_pending_requests=len(pending),
        total_sent_requests=len(sent),
    )
