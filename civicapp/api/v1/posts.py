"""
Community post endpoints

civicapp/api/v1/posts.py

"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from civicapp.api.deps import get_current_active_user, get_optional_user_id
from civicapp.models.comment import LikeResponse, ReportCreate
from civicapp.models.post import CommunityPost, PostResponse, PostUpdate
from civicapp.models.user import User
from civicapp.services import repository
from civicapp.services.engagement import add_view, has_liked, toggle_like
from civicapp.services.history import record_post_edit
from civicapp.services.moderation import add_report, set_post_flag
from civicapp.services.population import user_summaries

router = APIRouter()


async def posts_response(items: List[CommunityPost], viewer_id: Optional[str] = None) -> List[PostResponse]:
    """Shape posts, populating authors and linked complaints that still exist"""
    users = await user_summaries(p.author for p in items)
    complaints = await repository.complaints.find_many(
        p.related_complaint for p in items if p.related_complaint
    )

    shaped = []
    for post in items:
        related = complaints.get(post.related_complaint) if post.related_complaint else None
        shaped.append(PostResponse(
            id=post.id,
            title=post.title,
            content=post.content,
            author=users.get(post.author),
            community=post.community,
            type=post.type,
            images=post.images,
            related_complaint=(
                {"id": related.id, "title": related.title, "status": related.status.value}
                if related else None
            ),
            tags=post.tags,
            like_count=post.like_count,
            view_count=post.view_count,
            comment_count=post.comment_count,
            has_liked=has_liked(post, viewer_id),
            is_pinned=post.is_pinned,
            is_locked=post.is_locked,
            is_edited=post.is_edited,
            edit_history=post.edit_history,
            created_at=post.created_at,
            updated_at=post.updated_at,
        ))
    return shaped


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
):
    """Get a post; signed-in viewers are counted once each"""
    post = await repository.posts.get(post_id)
    # Repeat views write nothing
    if viewer_id and viewer_id not in post.views:
        post, _ = await repository.posts.mutate(post_id, lambda p: add_view(p, viewer_id))
    return (await posts_response([post], viewer_id))[0]


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: str,
    payload: PostUpdate,
    current_user: User = Depends(get_current_active_user),
):
    """Edit a post's title and/or content (author only)"""
    if payload.title is None and payload.content is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nothing to update"
        )
    post, _ = await repository.posts.mutate(
        post_id, lambda p: record_post_edit(p, current_user.id, payload.title, payload.content)
    )
    return (await posts_response([post], current_user.id))[0]


@router.post("/{post_id}/like", response_model=LikeResponse)
async def like_post(
    post_id: str,
    current_user: User = Depends(get_current_active_user),
):
    """Like or unlike a post"""
    _, result = await repository.posts.mutate(post_id, lambda p: toggle_like(p, current_user.id))
    return LikeResponse(
        message="Post liked" if result.has_liked else "Post unliked",
        like_count=result.like_count,
        has_liked=result.has_liked,
    )


async def _toggle_flag(post_id: str, actor: User, flag: str) -> PostResponse:
    post = await repository.posts.get(post_id)
    community = await repository.communities.get(post.community)
    post, _ = await repository.posts.mutate(
        post_id, lambda p: set_post_flag(p, community, actor.id, flag)
    )
    return (await posts_response([post], actor.id))[0]


@router.post("/{post_id}/pin", response_model=PostResponse)
async def pin_post(post_id: str, current_user: User = Depends(get_current_active_user)):
    """Pin or unpin a post (moderators)"""
    return await _toggle_flag(post_id, current_user, "is_pinned")


@router.post("/{post_id}/lock", response_model=PostResponse)
async def lock_post(post_id: str, current_user: User = Depends(get_current_active_user)):
    """Lock or unlock a post's comments (moderators)"""
    return await _toggle_flag(post_id, current_user, "is_locked")


@router.post("/{post_id}/report")
async def report_post(
    post_id: str,
    payload: ReportCreate,
    current_user: User = Depends(get_current_active_user),
):
    _, report_count = await repository.posts.mutate(
        post_id, lambda p: add_report(p, current_user.id, payload.reason)
    )
    return {"message": "Post reported", "report_count": report_count}
