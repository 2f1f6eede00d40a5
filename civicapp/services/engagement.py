"""
Vote, like and view toggles for complaints, comments and community posts

civicapp/services/engagement.py

Every function here works on a copy of the entity it is given and returns the
updated entity together with the result the caller reports back. Nothing is
persisted; `DocumentRepository.mutate` wraps these calls in an atomic
read-modify-write.
"""
from datetime import datetime
from typing import Tuple, TypeVar, Union
from pydantic import BaseModel
from civicapp.core.exceptions import NotFound
from civicapp.models.base import VoteType, VoteState
from civicapp.models.comment import Comment
from civicapp.models.complaint import Complaint
from civicapp.models.post import CommunityPost

Likeable = TypeVar("Likeable", Comment, CommunityPost)


class VoteResult(BaseModel):
    up_count: int
    down_count: int
    user_state: VoteState


class LikeResult(BaseModel):
    like_count: int
    has_liked: bool


def toggle_vote(complaint: Complaint, user_id: str, vote_type: VoteType) -> Tuple[Complaint, VoteResult]:
    """Cast, switch or withdraw a user's vote on a complaint.

    The user is always removed from both sets first. They are then added to
    the requested set unless that was already their vote, so repeating the
    same vote withdraws it.
    """
    complaint = complaint.model_copy(deep=True)
    previous = complaint.vote_state_of(user_id)

    complaint.upvotes.pop(user_id, None)
    complaint.downvotes.pop(user_id, None)

    requested = VoteState(VoteType(vote_type).value)
    if previous != requested:
        target = complaint.upvotes if requested == VoteState.UP else complaint.downvotes
        target[user_id] = datetime.utcnow()

    complaint.updated_at = datetime.utcnow()
    return complaint, VoteResult(
        up_count=len(complaint.upvotes),
        down_count=len(complaint.downvotes),
        user_state=complaint.vote_state_of(user_id),
    )


def toggle_like(entity: Likeable, user_id: str) -> Tuple[Likeable, LikeResult]:
    """Like an entity, or unlike it when the user already likes it"""
    _ensure_visible(entity)
    entity = entity.model_copy(deep=True)

    if user_id in entity.likes:
        del entity.likes[user_id]
    else:
        entity.likes[user_id] = datetime.utcnow()

    entity.updated_at = datetime.utcnow()
    return entity, LikeResult(like_count=len(entity.likes), has_liked=user_id in entity.likes)


def add_view(post: CommunityPost, user_id: str) -> Tuple[CommunityPost, int]:
    """Record that a user has seen a post; repeat views are not counted"""
    if user_id in post.views:
        return post, len(post.views)
    post = post.model_copy(deep=True)
    post.views[user_id] = datetime.utcnow()
    return post, len(post.views)


def has_liked(entity: Union[Comment, CommunityPost], user_id: str) -> bool:
    return bool(user_id) and user_id in entity.likes


def _ensure_visible(entity) -> None:
    if getattr(entity, "is_deleted", False):
        raise NotFound(f"{type(entity).__name__} not found")
