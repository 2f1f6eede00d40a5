"""
Complaint endpoints

civicapp/api/v1/complaints.py

"""
import re
from typing import Dict, Optional
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from pydantic import BaseModel
from civicapp.api.deps import PageParams, get_admin_user, get_current_active_user, get_optional_user_id
from civicapp.models.base import ComplaintCategory, ComplaintStatus, GeoPoint, ImageRef
from civicapp.models.complaint import (
    Complaint, ComplaintCreate, ComplaintListResponse, ComplaintResponse,
    StatusUpdate, VoteRequest, VoteResponse,
)
from civicapp.models.user import User, UserSummary
from civicapp.services import repository
from civicapp.services.engagement import toggle_vote
from civicapp.services.history import record_status_change
from civicapp.services.notifications import notification_bus
from civicapp.services.population import user_summaries
from civicapp.services.storage import upload_image
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

EARTH_RADIUS_KM = 6378.1
SORTABLE_FIELDS = {"created_at", "updated_at", "title", "status", "priority", "category"}


class AssignRequest(BaseModel):
    user_id: str


def complaint_response(
    complaint: Complaint,
    users: Dict[str, UserSummary],
    viewer_id: Optional[str] = None,
) -> ComplaintResponse:
    """Shape a complaint for the API, hiding the submitter of anonymous reports"""
    show_submitter = not complaint.is_anonymous or viewer_id == complaint.submitted_by
    return ComplaintResponse(
        id=complaint.id,
        title=complaint.title,
        description=complaint.description,
        category=complaint.category,
        status=complaint.status,
        priority=complaint.priority,
        location=complaint.location,
        images=complaint.images,
        submitted_by=users.get(complaint.submitted_by) if show_submitter else None,
        assigned_to=users.get(complaint.assigned_to) if complaint.assigned_to else None,
        community=complaint.community,
        tags=complaint.tags,
        is_anonymous=complaint.is_anonymous,
        upvote_count=len(complaint.upvotes),
        downvote_count=len(complaint.downvotes),
        vote_count=complaint.vote_count,
        comment_count=len(complaint.comments),
        engagement_score=complaint.engagement_score,
        user_vote=complaint.vote_state_of(viewer_id) if viewer_id else None,
        status_history=complaint.status_history,
        resolution_details=complaint.resolution_details,
        created_at=complaint.created_at,
        updated_at=complaint.updated_at,
    )


async def complaints_response(items, viewer_id):
    users = await user_summaries(
        [c.submitted_by for c in items] + [c.assigned_to for c in items]
    )
    return [complaint_response(c, users, viewer_id) for c in items]


@router.get("/", response_model=ComplaintListResponse)
async def list_complaints(
    page: PageParams = Depends(),
    status_filter: Optional[ComplaintStatus] = Query(None, alias="status"),
    category: Optional[ComplaintCategory] = None,
    search: Optional[str] = Query(None, min_length=1),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: float = Query(10, gt=0, description="Search radius in km"),
    sort_by: str = "created_at",
    order: str = Query("desc", pattern="^(asc|desc)$"),
    viewer_id: Optional[str] = Depends(get_optional_user_id),
):
    """List complaints with filtering, search, proximity and pagination"""
    query = {}

    if status_filter:
        query["status"] = status_filter.value

    if category:
        query["category"] = category.value

    # Search in title and description
    if search:
        query["$or"] = [
            {"title": {"$regex": re.escape(search), "$options": "i"}},
            {"description": {"$regex": re.escape(search), "$options": "i"}},
        ]

    # Proximity filter
    if lat is not None and lng is not None:
        query["location"] = {
            "$geoWithin": {"$centerSphere": [[lng, lat], radius / EARTH_RADIUS_KM]}
        }

    if sort_by not in SORTABLE_FIELDS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot sort by {sort_by}"
        )
    direction = -1 if order == "desc" else 1

    items, total = await repository.complaints.list(
        query, sort=[(sort_by, direction)], skip=page.skip, limit=page.limit
    )
    return {"items": await complaints_response(items, viewer_id), "pagination": page.pagination(total)}


@router.get("/user/my-complaints", response_model=ComplaintListResponse)
async def my_complaints(
    page: PageParams = Depends(),
    status_filter: Optional[ComplaintStatus] = Query(None, alias="status"),
    current_user: User = Depends(get_current_active_user),
):
    """Complaints submitted by the caller"""
    query = {"submitted_by": current_user.id}
    if status_filter:
        query["status"] = status_filter.value

    items, total = await repository.complaints.list(
        query, sort=[("created_at", -1)], skip=page.skip, limit=page.limit
    )
    return {"items": await complaints_response(items, current_user.id), "pagination": page.pagination(total)}


@router.get("/{complaint_id}", response_model=ComplaintResponse)
async def get_complaint(
    complaint_id: str,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
):
    complaint = await repository.complaints.get(complaint_id)
    users = await user_summaries([complaint.submitted_by, complaint.assigned_to])
    return complaint_response(complaint, users, viewer_id)


@router.post("/", response_model=ComplaintResponse, status_code=status.HTTP_201_CREATED)
async def create_complaint(
    payload: ComplaintCreate,
    current_user: User = Depends(get_current_active_user),
):
    """Submit a new complaint"""
    if payload.community:
        community = await repository.communities.get(payload.community)
        if not community.settings.allow_complaint_sharing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="This community does not accept complaints"
            )

    complaint = Complaint(
        title=payload.title.strip(),
        description=payload.description.strip(),
        category=payload.category,
        priority=payload.priority,
        location=GeoPoint(
            coordinates=[payload.location.lng, payload.location.lat],
            address=payload.location.address,
        ),
        submitted_by=current_user.id,
        community=payload.community,
        tags=payload.tags,
        is_anonymous=payload.is_anonymous,
    )
    complaint = await repository.complaints.insert(complaint)

    if complaint.community:
        await repository.communities.add_reference(complaint.community, "complaints", complaint.id)
    await repository.users.increment(current_user.id, "complaints_submitted")

    users = {current_user.id: UserSummary(id=current_user.id, name=current_user.name, avatar=current_user.avatar)}
    response = complaint_response(complaint, users, current_user.id)
    notification_bus.publish("new-complaint", response.model_dump(mode="json"))
    logger.info(f"Complaint {complaint.id} submitted by {current_user.id}")
    return response


@router.put("/{complaint_id}/status", response_model=ComplaintResponse)
async def update_status(
    complaint_id: str,
    payload: StatusUpdate,
    current_user: User = Depends(get_current_active_user),
):
    """Change a complaint's status (admin or assignee)"""
    old_status = {}

    def change(complaint: Complaint) -> Complaint:
        old_status["value"] = complaint.status
        return record_status_change(complaint, payload.status, current_user, payload.comment)

    complaint, _ = await repository.complaints.mutate(complaint_id, change)

    notification_bus.publish(
        "complaint-status-update",
        {
            "complaint_id": complaint.id,
            "old_status": ComplaintStatus(old_status["value"]).value,
            "new_status": complaint.status.value,
            "updated_by": current_user.name,
        },
    )
    users = await user_summaries([complaint.submitted_by, complaint.assigned_to])
    return complaint_response(complaint, users, current_user.id)


@router.put("/{complaint_id}/assign", response_model=ComplaintResponse)
async def assign_complaint(
    complaint_id: str,
    payload: AssignRequest,
    current_user: User = Depends(get_admin_user),
):
    """Assign a complaint to an official (admin only)"""
    assignee = await repository.users.get(payload.user_id)

    def change(complaint: Complaint) -> Complaint:
        return complaint.model_copy(update={"assigned_to": assignee.id})

    complaint, _ = await repository.complaints.mutate(complaint_id, change)
    users = await user_summaries([complaint.submitted_by, complaint.assigned_to])
    return complaint_response(complaint, users, current_user.id)


@router.post("/{complaint_id}/vote", response_model=VoteResponse)
async def vote_complaint(
    complaint_id: str,
    payload: VoteRequest,
    current_user: User = Depends(get_current_active_user),
):
    """Upvote or downvote; repeating the same vote withdraws it"""
    _, result = await repository.complaints.mutate(
        complaint_id, lambda c: toggle_vote(c, current_user.id, payload.vote_type)
    )
    notification_bus.publish(
        "complaint-vote",
        {"complaint_id": complaint_id, "up_count": result.up_count, "down_count": result.down_count},
        room=complaint_id,
    )
    return VoteResponse(
        up_count=result.up_count,
        down_count=result.down_count,
        user_state=result.user_state,
    )


@router.post("/{complaint_id}/images", response_model=ComplaintResponse)
async def add_complaint_image(
    complaint_id: str,
    image: UploadFile = File(...),
    caption: str = "",
    current_user: User = Depends(get_current_active_user),
):
    """Attach a photo to a complaint (submitter only)"""
    complaint = await repository.complaints.get(complaint_id)
    if complaint.submitted_by != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only add images to your own complaints"
        )

    ok, url_or_error, _ = await upload_image(image, folder="complaints")
    if not ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=url_or_error)

    def change(c: Complaint) -> Complaint:
        c = c.model_copy(deep=True)
        c.images.append(ImageRef(url=url_or_error, caption=caption))
        return c

    complaint, _ = await repository.complaints.mutate(complaint_id, change)
    users = await user_summaries([complaint.submitted_by, complaint.assigned_to])
    return complaint_response(complaint, users, current_user.id)
