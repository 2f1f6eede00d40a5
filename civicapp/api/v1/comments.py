"""
Comment endpoints

civicapp/api/v1/comments.py

"""
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from civicapp.api.deps import PageParams, get_current_active_user, get_optional_user_id
from civicapp.models.comment import (
    Comment, CommentCreate, CommentListResponse, CommentResponse,
    CommentUpdate, LikeResponse, ReportCreate,
)
from civicapp.models.user import User, UserSummary
from civicapp.services import repository
from civicapp.services.engagement import has_liked, toggle_like
from civicapp.services.history import record_comment_edit
from civicapp.services.moderation import add_report, soft_delete
from civicapp.services.notifications import notification_bus
from civicapp.services.population import user_summaries
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def comment_response(
    comment: Comment,
    users: Dict[str, UserSummary],
    viewer_id: Optional[str] = None,
    replies: Optional[List[Comment]] = None,
) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        content=comment.content,
        author=users.get(comment.author),
        complaint=comment.complaint,
        community_post=comment.community_post,
        parent_comment=comment.parent_comment,
        replies=[comment_response(r, users, viewer_id) for r in replies or []],
        like_count=comment.like_count,
        reply_count=comment.reply_count,
        has_liked=has_liked(comment, viewer_id),
        is_edited=comment.is_edited,
        edit_history=comment.edit_history,
        is_deleted=comment.is_deleted,
        deleted_at=comment.deleted_at,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


async def _with_replies(comments: List[Comment], viewer_id: Optional[str], include_deleted: bool = False):
    """Attach replies (oldest first) and populate every author"""
    reply_ids = [rid for c in comments for rid in c.replies]
    replies = await repository.comments.find_many(reply_ids)

    authors = [c.author for c in comments] + [r.author for r in replies.values()]
    users = await user_summaries(authors)

    shaped = []
    for comment in comments:
        # Dangling reply ids are skipped
        thread = [replies[rid] for rid in comment.replies if rid in replies]
        if not include_deleted:
            thread = [r for r in thread if not r.is_deleted]
        thread.sort(key=lambda r: r.created_at)
        shaped.append(comment_response(comment, users, viewer_id, thread))
    return shaped


async def _list_top_level(field: str, target_id: str, page: PageParams, viewer_id: Optional[str]):
    query = {field: target_id, "parent_comment": None, "is_deleted": False}
    items, total = await repository.comments.list(
        query, sort=[("created_at", -1)], skip=page.skip, limit=page.limit
    )
    return {"items": await _with_replies(items, viewer_id), "pagination": page.pagination(total)}


@router.post("/", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    payload: CommentCreate,
    current_user: User = Depends(get_current_active_user),
):
    """Create a new comment or reply"""
    if bool(payload.complaint) == bool(payload.community_post):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either complaint or community post ID is required"
        )

    # Validate that the target exists
    if payload.complaint:
        await repository.complaints.get(payload.complaint)

    if payload.community_post:
        post = await repository.posts.get(payload.community_post)
        if post.is_locked:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="This post is locked"
            )

    if payload.parent_comment:
        parent = await repository.comments.get(payload.parent_comment)
        if parent.complaint != payload.complaint or parent.community_post != payload.community_post:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Reply must belong to the same thread as its parent"
            )

    comment = Comment(
        content=payload.content.strip(),
        author=current_user.id,
        complaint=payload.complaint,
        community_post=payload.community_post,
        parent_comment=payload.parent_comment,
    )
    comment = await repository.comments.insert(comment)

    # Add comment to its parents; a failure here leaves a dangling reference at worst
    if payload.complaint:
        await repository.complaints.add_reference(payload.complaint, "comments", comment.id)
    if payload.community_post:
        await repository.posts.add_reference(payload.community_post, "comments", comment.id)
    if payload.parent_comment:
        await repository.comments.add_reference(payload.parent_comment, "replies", comment.id)

    users = {current_user.id: UserSummary(id=current_user.id, name=current_user.name, avatar=current_user.avatar)}
    response = comment_response(comment, users, current_user.id)

    if payload.complaint:
        notification_bus.publish(
            "new-complaint-comment",
            {"complaint_id": payload.complaint, "comment": response.model_dump(mode="json")},
        )
    else:
        notification_bus.publish(
            "new-post-comment",
            {"post_id": payload.community_post, "comment": response.model_dump(mode="json")},
        )
    return response


@router.get("/complaint/{complaint_id}", response_model=CommentListResponse)
async def get_complaint_comments(
    complaint_id: str,
    page: PageParams = Depends(),
    viewer_id: Optional[str] = Depends(get_optional_user_id),
):
    """Top-level comments on a complaint, newest first"""
    return await _list_top_level("complaint", complaint_id, page, viewer_id)


@router.get("/post/{post_id}", response_model=CommentListResponse)
async def get_post_comments(
    post_id: str,
    page: PageParams = Depends(),
    viewer_id: Optional[str] = Depends(get_optional_user_id),
):
    """Top-level comments on a community post, newest first"""
    return await _list_top_level("community_post", post_id, page, viewer_id)


@router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(
    comment_id: str,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
):
    """Get a comment with its replies; deleted comments stay addressable"""
    comment = await repository.comments.get(comment_id)
    shaped = await _with_replies([comment], viewer_id, include_deleted=True)
    return shaped[0]


@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: str,
    payload: CommentUpdate,
    current_user: User = Depends(get_current_active_user),
):
    """Edit a comment (author only, within the edit window)"""
    comment, _ = await repository.comments.mutate(
        comment_id, lambda c: record_comment_edit(c, current_user.id, payload.content)
    )
    shaped = await _with_replies([comment], current_user.id)
    return shaped[0]


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: str,
    current_user: User = Depends(get_current_active_user),
):
    """Delete a comment (soft delete)"""
    await repository.comments.mutate(comment_id, lambda c: soft_delete(c, current_user))
    logger.info(f"Comment {comment_id} deleted by {current_user.id}")
    return {"message": "Comment deleted successfully"}


@router.post("/{comment_id}/like", response_model=LikeResponse)
async def like_comment(
    comment_id: str,
    current_user: User = Depends(get_current_active_user),
):
    """Like or unlike a comment"""
    _, result = await repository.comments.mutate(
        comment_id, lambda c: toggle_like(c, current_user.id)
    )
    return LikeResponse(
        message="Comment liked" if result.has_liked else "Comment unliked",
        like_count=result.like_count,
        has_liked=result.has_liked,
    )


@router.post("/{comment_id}/report")
async def report_comment(
    comment_id: str,
    payload: ReportCreate,
    current_user: User = Depends(get_current_active_user),
):
    _, report_count = await repository.comments.mutate(
        comment_id, lambda c: add_report(c, current_user.id, payload.reason)
    )
    return {"message": "Comment reported", "report_count": report_count}
