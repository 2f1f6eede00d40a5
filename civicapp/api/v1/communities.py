"""
Community endpoints: membership and community posts

civicapp/api/v1/communities.py

"""
import re
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from civicapp.api.deps import PageParams, get_current_active_user, get_optional_user_id
from civicapp.api.v1.posts import posts_response
from civicapp.models.base import CommunityCategory, PostType
from civicapp.models.community import (
    Community, CommunityCreate, CommunityListResponse, CommunityResponse,
    CommunitySettings, MemberResponse, MembershipResponse, ModeratorUpdate,
)
from civicapp.models.post import CommunityPost, PostCreate, PostListResponse, PostResponse
from civicapp.models.user import User, UserSummary
from civicapp.services import repository
from civicapp.services import membership
from civicapp.services.notifications import notification_bus
from civicapp.services.population import user_summaries
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def community_response(
    community: Community,
    users: Dict[str, UserSummary],
    viewer_id: Optional[str] = None,
) -> CommunityResponse:
    return CommunityResponse(
        id=community.id,
        name=community.name,
        slug=community.slug,
        description=community.description,
        category=community.category,
        avatar=community.avatar,
        cover_image=community.cover_image,
        created_by=users.get(community.created_by),
        moderators=community.moderators,
        members=[MemberResponse(**m.model_dump()) for m in community.members],
        settings=community.settings,
        rules=community.rules,
        tags=community.tags,
        member_count=community.member_count,
        post_count=community.post_count,
        is_member=bool(viewer_id) and membership.is_member(community, viewer_id),
        is_moderator=bool(viewer_id) and membership.is_moderator(community, viewer_id),
        created_at=community.created_at,
        updated_at=community.updated_at,
    )


async def communities_response(items: List[Community], viewer_id: Optional[str]):
    users = await user_summaries(c.created_by for c in items)
    return [community_response(c, users, viewer_id) for c in items]


@router.get("/", response_model=CommunityListResponse)
async def list_communities(
    page: PageParams = Depends(),
    category: Optional[CommunityCategory] = None,
    search: Optional[str] = Query(None, min_length=1),
    viewer_id: Optional[str] = Depends(get_optional_user_id),
):
    """List active communities"""
    query = {"is_active": True}
    if category:
        query["category"] = category.value
    if search:
        pattern = re.escape(search)
        query["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]

    items, total = await repository.communities.list(
        query, sort=[("created_at", -1)], skip=page.skip, limit=page.limit
    )
    return {"items": await communities_response(items, viewer_id), "pagination": page.pagination(total)}


@router.get("/user/my-communities", response_model=List[CommunityResponse])
async def my_communities(current_user: User = Depends(get_current_active_user)):
    """Communities the caller belongs to"""
    items, _ = await repository.communities.list(
        {"members.user": current_user.id, "is_active": True},
        sort=[("created_at", -1)],
    )
    return await communities_response(items, current_user.id)


@router.get("/{community_id}", response_model=CommunityResponse)
async def get_community(
    community_id: str,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
):
    community = await repository.communities.get(community_id)
    if not community.is_active:
        raise repository.communities.not_found()
    users = await user_summaries([community.created_by])
    return community_response(community, users, viewer_id)


@router.post("/", response_model=CommunityResponse, status_code=status.HTTP_201_CREATED)
async def create_community(
    payload: CommunityCreate,
    current_user: User = Depends(get_current_active_user),
):
    """Create a community; the creator becomes its admin"""
    name = payload.name.strip()
    existing, _ = await repository.communities.list({"name": name}, sort=[("_id", 1)], limit=1)
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Community name already exists"
        )

    community = membership.new_community(
        name=name,
        description=payload.description.strip(),
        creator_id=current_user.id,
        category=payload.category,
        settings=CommunitySettings(
            is_private=payload.is_private,
            require_approval=payload.require_approval,
        ),
        rules=payload.rules,
        tags=payload.tags,
    )
    community = await repository.communities.insert(community)

    # Update user's communities
    await repository.users.add_reference(current_user.id, "communities", community.id)

    users = {current_user.id: UserSummary(id=current_user.id, name=current_user.name, avatar=current_user.avatar)}
    logger.info(f"Community {community.slug} created by {current_user.id}")
    return community_response(community, users, current_user.id)


@router.post("/{community_id}/join", response_model=MembershipResponse)
async def join_community(
    community_id: str,
    current_user: User = Depends(get_current_active_user),
):
    _, member_count = await repository.communities.mutate(
        community_id, lambda c: membership.join(c, current_user.id)
    )
    await repository.users.add_reference(current_user.id, "communities", community_id)

    notification_bus.publish(
        "member-joined",
        {
            "community": community_id,
            "user": {"id": current_user.id, "name": current_user.name, "avatar": current_user.avatar},
        },
        room=community_id,
    )
    return MembershipResponse(message="Successfully joined the community", member_count=member_count)


@router.post("/{community_id}/leave", response_model=MembershipResponse)
async def leave_community(
    community_id: str,
    current_user: User = Depends(get_current_active_user),
):
    _, member_count = await repository.communities.mutate(
        community_id, lambda c: membership.leave(c, current_user.id)
    )
    await repository.users.remove_reference(current_user.id, "communities", community_id)

    notification_bus.publish(
        "member-left",
        {"community": community_id, "user": {"id": current_user.id}},
        room=community_id,
    )
    return MembershipResponse(message="Successfully left the community", member_count=member_count)


@router.post("/{community_id}/moderators")
async def add_moderator(
    community_id: str,
    payload: ModeratorUpdate,
    current_user: User = Depends(get_current_active_user),
):
    """Appoint a member as moderator (creator only)"""
    _, moderator_count = await repository.communities.mutate(
        community_id, lambda c: membership.promote_moderator(c, current_user.id, payload.user_id)
    )
    return {"message": "Moderator added", "moderator_count": moderator_count}


@router.get("/{community_id}/posts", response_model=PostListResponse)
async def get_community_posts(
    community_id: str,
    page: PageParams = Depends(),
    post_type: Optional[PostType] = Query(None, alias="type"),
    viewer_id: Optional[str] = Depends(get_optional_user_id),
):
    """Posts in a community, pinned first then newest"""
    query = {"community": community_id}
    if post_type:
        query["type"] = post_type.value

    items, total = await repository.posts.list(
        query, sort=[("is_pinned", -1), ("created_at", -1)], skip=page.skip, limit=page.limit
    )
    return {"items": await posts_response(items, viewer_id), "pagination": page.pagination(total)}


@router.post("/{community_id}/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_community_post(
    community_id: str,
    payload: PostCreate,
    current_user: User = Depends(get_current_active_user),
):
    """Create a post (members only)"""
    community = await repository.communities.get(community_id)
    if not community.is_active:
        raise repository.communities.not_found()

    if not membership.is_member(community, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Must be a community member to post"
        )
    if not community.settings.allow_posts and not membership.is_moderator(community, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Posting is disabled in this community"
        )
    if payload.related_complaint:
        await repository.complaints.get(payload.related_complaint)

    post = CommunityPost(
        title=payload.title.strip(),
        content=payload.content.strip(),
        type=payload.type,
        author=current_user.id,
        community=community.id,
        related_complaint=payload.related_complaint,
        tags=payload.tags,
    )
    post = await repository.posts.insert(post)

    # Add post to community
    await repository.communities.add_reference(community.id, "posts", post.id)

    response = (await posts_response([post], current_user.id))[0]
    notification_bus.publish("new-post", response.model_dump(mode="json"), room=community.id)
    return response
