from datetime import datetime
from enum import Enum
from typing import Optional

from crdo.schemas.run import CamelModel


class FriendStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


class FriendAction(str, Enum):
    accept = "accept"
    reject = "reject"


class FriendRequestCreate(CamelModel):
    friend_email: str


class FriendRequestRespond(CamelModel):
    action: FriendAction


class FriendRequestRead(CamelModel):
    id: int
    user_id: str
    friend_id: str
    status: FriendStatus
    requested_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None


class FriendRequestSent(CamelModel):
    message: str
    friend_request: FriendRequestRead


class FriendRequestAnswered(CamelModel):
    message: str
    status: FriendStatus


class FriendRead(CamelModel):
    id: str
    email: Optional[str] = None
    relationship_id: int
    status: FriendStatus
    requested_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None


class FriendsList(CamelModel):
    friends: list[FriendRead]
    pending_requests: list[FriendRead]
    sent_requests: list[FriendRead]
    total_friends: int
    total_pending_requests: int
    total_sent_requests: int
