"""
civicapp/models/complaint.py

"""
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from civicapp.models.base import (
    BaseDocument, PyObjectId, EngagementSet, GeoPoint, ImageRef, Pagination,
    ComplaintCategory, ComplaintStatus, Priority, VoteType, VoteState,
)
from civicapp.models.user import UserSummary


class StatusChange(BaseModel):
    """One entry of the append-only status history"""
    status: ComplaintStatus
    changed_by: Optional[PyObjectId] = None
    changed_at: datetime = Field(default_factory=datetime.utcnow)
    comment: Optional[str] = None

class ResolutionDetails(BaseModel):
    description: Optional[str] = None
    resolved_by: PyObjectId
    resolved_at: datetime = Field(default_factory=datetime.utcnow)
    resolution_images: List[str] = Field(default_factory=list)

class Complaint(BaseDocument):
    """Complaint document model"""
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    category: ComplaintCategory
    status: ComplaintStatus = Field(default=ComplaintStatus.SUBMITTED)
    priority: Priority = Field(default=Priority.MEDIUM)
    location: GeoPoint
    images: List[ImageRef] = Field(default_factory=list)

    submitted_by: PyObjectId
    assigned_to: Optional[PyObjectId] = None

    # Engagement
    upvotes: EngagementSet = Field(default_factory=dict)
    downvotes: EngagementSet = Field(default_factory=dict)
    comments: List[PyObjectId] = Field(default_factory=list)

    community: Optional[PyObjectId] = None
    tags: List[str] = Field(default_factory=list)
    is_anonymous: bool = Field(default=False)

    # Audit
    status_history: List[StatusChange] = Field(default_factory=list)
    resolution_details: Optional[ResolutionDetails] = None

    @property
    def vote_count(self) -> int:
        return len(self.upvotes) - len(self.downvotes)

    @property
    def engagement_score(self) -> int:
        return len(self.upvotes) + len(self.downvotes) + len(self.comments)

    def vote_state_of(self, user_id: str) -> VoteState:
        if user_id in self.upvotes:
            return VoteState.UP
        if user_id in self.downvotes:
            return VoteState.DOWN
        return VoteState.NONE


class LocationInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: str = Field(..., min_length=1)

class ComplaintCreate(BaseModel):
    """Create complaint request model"""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=5, max_length=100)
    description: str = Field(..., min_length=10, max_length=1000)
    category: ComplaintCategory
    priority: Priority = Priority.MEDIUM
    location: LocationInput
    tags: List[str] = Field(default_factory=list)
    is_anonymous: bool = False
    community: Optional[str] = None

class StatusUpdate(BaseModel):
    """Update complaint status request model"""
    model_config = ConfigDict(str_strip_whitespace=True)

    status: ComplaintStatus
    comment: Optional[str] = Field(None, max_length=500)

class VoteRequest(BaseModel):
    vote_type: VoteType

class VoteResponse(BaseModel):
    message: str = "Vote recorded successfully"
    up_count: int
    down_count: int
    user_state: VoteState

class ComplaintResponse(BaseModel):
    """Complaint response model"""
    id: str
    title: str
    description: str
    category: ComplaintCategory
    status: ComplaintStatus
    priority: Priority
    location: GeoPoint
    images: List[ImageRef] = Field(default_factory=list)
    submitted_by: Optional[UserSummary] = None
    assigned_to: Optional[UserSummary] = None
    community: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_anonymous: bool = False
    upvote_count: int = 0
    downvote_count: int = 0
    vote_count: int = 0
    comment_count: int = 0
    engagement_score: int = 0
    user_vote: Optional[VoteState] = None
    status_history: List[StatusChange] = Field(default_factory=list)
    resolution_details: Optional[ResolutionDetails] = None
    created_at: datetime
    updated_at: datetime

class ComplaintListResponse(BaseModel):
    items: List[ComplaintResponse]
    pagination: Pagination
