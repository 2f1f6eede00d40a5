"""
Soft delete, reports and post moderation flags

civicapp/services/moderation.py

"""
from datetime import datetime
from typing import Union
from civicapp.core.exceptions import AuthorizationDenied, InvalidState, NotFound
from civicapp.models.base import Report
from civicapp.models.comment import Comment, DELETED_PLACEHOLDER
from civicapp.models.community import Community
from civicapp.models.post import CommunityPost
from civicapp.models.user import User
from civicapp.services.membership import is_moderator


def soft_delete(comment: Comment, actor: User) -> Comment:
    """Tombstone a comment.

    The comment stays addressable and keeps its replies so threads stay
    intact; only its content is replaced. The deletion itself is not written
    to the edit history.
    """
    if comment.is_deleted:
        raise InvalidState("Comment has already been deleted")
    if comment.author != actor.id and not actor.is_privileged:
        raise AuthorizationDenied("Not authorized to delete this comment")

    now = datetime.utcnow()
    comment = comment.model_copy(deep=True)
    comment.is_deleted = True
    comment.deleted_at = now
    comment.content = DELETED_PLACEHOLDER
    comment.updated_at = now
    return comment


def add_report(entity: Union[Comment, CommunityPost], user_id: str, reason: str):
    """File a report; each user may report a given entity once"""
    if getattr(entity, "is_deleted", False):
        raise NotFound(f"{type(entity).__name__} not found")
    if any(report.reported_by == user_id for report in entity.reports):
        raise InvalidState("You have already reported this")

    entity = entity.model_copy(deep=True)
    entity.reports.append(Report(reported_by=user_id, reason=reason.strip()))
    return entity, len(entity.reports)


def set_post_flag(post: CommunityPost, community: Community, actor_id: str, flag: str) -> CommunityPost:
    """Flip `is_pinned` or `is_locked` on a post; moderators only"""
    if flag not in ("is_pinned", "is_locked"):
        raise ValueError(f"Unknown post flag: {flag}")
    if post.community != community.id:
        raise NotFound("Post not found")
    if not is_moderator(community, actor_id):
        raise AuthorizationDenied("Only community moderators can do this")

    post = post.model_copy(deep=True)
    setattr(post, flag, not getattr(post, flag))
    post.updated_at = datetime.utcnow()
    return post
