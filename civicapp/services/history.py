"""
Status and edit history recording

civicapp/services/history.py

History is written by the operation that changes the entity, before it is
persisted, rather than by a save hook. Entries are only ever appended.
"""
from datetime import datetime, timedelta
from typing import Optional
from civicapp.core.config import settings
from civicapp.core.exceptions import AuthorizationDenied, NotFound
from civicapp.models.base import ComplaintStatus, UserRole
from civicapp.models.comment import Comment, CommentEdit
from civicapp.models.complaint import Complaint, ResolutionDetails, StatusChange
from civicapp.models.post import CommunityPost, PostEdit
from civicapp.models.user import User


def can_change_status(complaint: Complaint, actor: User) -> bool:
    """Admins, and the official the complaint is assigned to"""
    return actor.role == UserRole.ADMIN or (
        complaint.assigned_to is not None and complaint.assigned_to == actor.id
    )


def record_status_change(
    complaint: Complaint,
    new_status: ComplaintStatus,
    actor: User,
    comment: Optional[str] = None,
) -> Complaint:
    """Move a complaint to `new_status` and log the transition.

    Reaching Resolved also fills in the resolution record. Creating a
    complaint does not log an entry, so the log holds transitions only.
    """
    if not can_change_status(complaint, actor):
        raise AuthorizationDenied("Not authorized to update this complaint")

    complaint = complaint.model_copy(deep=True)
    now = datetime.utcnow()
    new_status = ComplaintStatus(new_status)

    complaint.status = new_status
    complaint.status_history.append(
        StatusChange(status=new_status, changed_by=actor.id, changed_at=now, comment=comment)
    )
    if new_status == ComplaintStatus.RESOLVED:
        complaint.resolution_details = ResolutionDetails(
            description=comment,
            resolved_by=actor.id,
            resolved_at=now,
        )
    complaint.updated_at = now
    return complaint


def edit_window_open(comment: Comment, now: Optional[datetime] = None) -> bool:
    now = now or datetime.utcnow()
    return now - comment.created_at <= timedelta(hours=settings.COMMENT_EDIT_WINDOW_HOURS)


def record_comment_edit(comment: Comment, actor_id: str, content: str, now: Optional[datetime] = None) -> Comment:
    """Replace a comment's content, keeping the previous text in its edit history"""
    if comment.is_deleted:
        raise NotFound("Comment not found")
    if comment.author != actor_id:
        raise AuthorizationDenied("Not authorized to edit this comment")
    now = now or datetime.utcnow()
    if not edit_window_open(comment, now):
        raise AuthorizationDenied("Comment is too old to edit")

    content = content.strip()
    if content == comment.content:
        return comment

    comment = comment.model_copy(deep=True)
    comment.edit_history.append(CommentEdit(content=comment.content, edited_at=now))
    comment.content = content
    comment.is_edited = True
    comment.updated_at = now
    return comment


def record_post_edit(
    post: CommunityPost,
    actor_id: str,
    title: Optional[str] = None,
    content: Optional[str] = None,
) -> CommunityPost:
    """Change a post's title and/or content, keeping both previous values"""
    if post.author != actor_id:
        raise AuthorizationDenied("Not authorized to edit this post")

    new_title = title.strip() if title is not None else post.title
    new_content = content.strip() if content is not None else post.content
    if new_title == post.title and new_content == post.content:
        return post

    now = datetime.utcnow()
    post = post.model_copy(deep=True)
    post.edit_history.append(PostEdit(title=post.title, content=post.content, edited_at=now))
    post.title = new_title
    post.content = new_content
    post.is_edited = True
    post.updated_at = now
    return post
