"""
User profile, dashboard and statistics endpoints

civicapp/api/v1/users.py

"""
import re
from fastapi import APIRouter, Depends, HTTPException, Query, status
from civicapp.api.deps import PageParams, get_admin_user, get_current_active_user
from civicapp.api.v1.communities import communities_response
from civicapp.api.v1.complaints import EARTH_RADIUS_KM, complaints_response
from civicapp.models.base import CommunityCategory, ComplaintCategory, ComplaintStatus, GeoPoint
from civicapp.models.stats import (
    AdminStatsResponse, CommunityTotals, ComplaintTotals, DashboardResponse,
    UserRankListResponse, UserTotals,
)
from civicapp.models.user import LocationUpdate, RoleUpdate, User, UserProfileResponse, UserRankEntry
from civicapp.services import repository
from civicapp.services.stats import complaint_stats, count_by, start_of_month
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

NEARBY_RADIUS_KM = 5
DASHBOARD_ITEMS = 5
RECENT_ACTIVITY_ITEMS = 10


def rank_entry(user: User) -> UserRankEntry:
    return UserRankEntry(
        id=user.id,
        name=user.name,
        avatar=user.avatar,
        reputation_score=user.reputation_score,
        complaints_submitted=user.complaints_submitted,
    )


@router.get("/profile/{user_id}", response_model=UserProfileResponse)
async def get_profile(user_id: str):
    """Public profile with the communities that still exist"""
    user = await repository.users.get(user_id)
    communities = await repository.communities.find_many(user.communities)
    stats = await complaint_stats(user.id)

    return UserProfileResponse(
        id=user.id,
        name=user.name,
        avatar=user.avatar,
        role=user.role,
        communities=[cid for cid in user.communities if cid in communities],
        complaints_count=stats.total,
        complaint_stats=stats,
        reputation_score=user.reputation_score,
    )


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(current_user: User = Depends(get_current_active_user)):
    """The caller's recent complaints, communities, counts and nearby reports"""
    recent, _ = await repository.complaints.list(
        {"submitted_by": current_user.id}, sort=[("created_at", -1)], limit=DASHBOARD_ITEMS
    )
    communities, _ = await repository.communities.list(
        {"members.user": current_user.id, "is_active": True},
        sort=[("created_at", -1)],
        limit=DASHBOARD_ITEMS,
    )

    nearby = []
    if current_user.has_location:
        nearby, _ = await repository.complaints.list(
            {
                "location": {
                    "$geoWithin": {
                        "$centerSphere": [
                            current_user.location.coordinates,
                            NEARBY_RADIUS_KM / EARTH_RADIUS_KM,
                        ]
                    }
                },
                "submitted_by": {"$ne": current_user.id},
            },
            sort=[("created_at", -1)],
            limit=DASHBOARD_ITEMS,
        )

    return DashboardResponse(
        recent_complaints=await complaints_response(recent, current_user.id),
        communities=await communities_response(communities, current_user.id),
        complaint_stats=await complaint_stats(current_user.id),
        nearby_complaints=await complaints_response(nearby, current_user.id),
    )


@router.put("/location")
async def update_location(
    payload: LocationUpdate,
    current_user: User = Depends(get_current_active_user),
):
    location = GeoPoint(
        coordinates=[payload.longitude, payload.latitude],
        address=payload.address or "",
    )
    await repository.users.mutate(
        current_user.id, lambda u: u.model_copy(update={"location": location})
    )
    return {"message": "Location updated successfully"}


@router.get("/search", response_model=UserRankListResponse)
async def search_users(
    q: str = Query(""),
    page: PageParams = Depends(),
    current_user: User = Depends(get_current_active_user),
):
    """Find active users by name or email"""
    q = q.strip()
    if len(q) < 2:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Search query must be at least 2 characters"
        )

    pattern = re.escape(q)
    query = {
        "$or": [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"email": {"$regex": pattern, "$options": "i"}},
        ],
        "is_active": True,
    }
    items, total = await repository.users.list(
        query, sort=[("reputation_score", -1)], skip=page.skip, limit=page.limit
    )
    return {"items": [rank_entry(u) for u in items], "pagination": page.pagination(total)}


@router.get("/leaderboard", response_model=UserRankListResponse)
async def leaderboard(page: PageParams = Depends()):
    """Active users ranked by reputation, then by complaints submitted"""
    items, total = await repository.users.list(
        {"is_active": True},
        sort=[("reputation_score", -1), ("complaints_submitted", -1)],
        skip=page.skip,
        limit=page.limit,
    )
    return {"items": [rank_entry(u) for u in items], "pagination": page.pagination(total)}


@router.get("/admin/stats", response_model=AdminStatsResponse)
async def admin_stats(current_user: User = Depends(get_admin_user)):
    """Platform-wide counts and the latest complaints (admin only)"""
    by_status = await count_by(repository.complaints, "status", ComplaintStatus)
    by_category = await count_by(repository.complaints, "category", ComplaintCategory)
    communities_by_category = await count_by(
        repository.communities, "category", CommunityCategory, {"is_active": True}
    )
    recent, _ = await repository.complaints.list({}, sort=[("created_at", -1)], limit=RECENT_ACTIVITY_ITEMS)

    return AdminStatsResponse(
        user_stats=UserTotals(
            total=await repository.users.count({"is_active": True}),
            new_this_month=await repository.users.count(
                {"is_active": True, "created_at": {"$gte": start_of_month()}}
            ),
        ),
        complaint_stats=ComplaintTotals(
            total=await repository.complaints.count({}),
            by_status=by_status,
            by_category=by_category,
        ),
        community_stats=CommunityTotals(
            total=await repository.communities.count({"is_active": True}),
            by_category=communities_by_category,
        ),
        recent_activity=await complaints_response(recent, current_user.id),
    )


@router.put("/{user_id}/role", response_model=UserProfileResponse)
async def update_role(
    user_id: str,
    payload: RoleUpdate,
    current_user: User = Depends(get_admin_user),
):
    """Change a user's role (admin only)"""
    user, _ = await repository.users.mutate(
        user_id, lambda u: u.model_copy(update={"role": payload.role})
    )
    logger.info(f"User {user_id} role set to {payload.role.value} by {current_user.id}")
    return UserProfileResponse(
        id=user.id,
        name=user.name,
        avatar=user.avatar,
        role=user.role,
        communities=user.communities,
        reputation_score=user.reputation_score,
    )
