"""
civicapp/models/community.py

"""
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
import re
from civicapp.models.base import (
    BaseDocument, PyObjectId, GeoPoint, Pagination, CommunityCategory, MemberRole,
)
from civicapp.models.user import UserSummary

DEFAULT_AVATAR = "https://via.placeholder.com/200x200/009688/ffffff?text=Community"
DEFAULT_COVER = "https://via.placeholder.com/800x200/009688/ffffff?text=Community+Cover"


class MemberRecord(BaseModel):
    user: PyObjectId
    joined_at: datetime = Field(default_factory=datetime.utcnow)
    role: MemberRole = Field(default=MemberRole.MEMBER)

class CommunitySettings(BaseModel):
    is_private: bool = False
    require_approval: bool = False
    allow_posts: bool = True
    allow_complaint_sharing: bool = True

class Community(BaseDocument):
    """Community document model"""
    name: str = Field(..., min_length=3, max_length=50)
    slug: str = ""
    description: str = Field(..., max_length=500)
    category: CommunityCategory = Field(default=CommunityCategory.GENERAL)
    avatar: str = DEFAULT_AVATAR
    cover_image: str = DEFAULT_COVER

    created_by: PyObjectId
    moderators: List[PyObjectId] = Field(default_factory=list)
    members: List[MemberRecord] = Field(default_factory=list)
    posts: List[PyObjectId] = Field(default_factory=list)
    complaints: List[PyObjectId] = Field(default_factory=list)

    location: Optional[GeoPoint] = None
    settings: CommunitySettings = Field(default_factory=CommunitySettings)
    rules: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    is_active: bool = Field(default=True)

    def model_post_init(self, __context) -> None:
        if not self.slug:
            self.slug = make_slug(self.name)

    @property
    def member_count(self) -> int:
        return len(self.members)

    @property
    def post_count(self) -> int:
        return len(self.posts)


def make_slug(name: str) -> str:
    """Lower-case, strict slug for a community name"""
    slug = re.sub(r'[^\w\s-]', '', name.lower())
    slug = re.sub(r'[\s_-]+', '-', slug)
    return slug.strip('-')


class CommunityCreate(BaseModel):
    """Create community request model"""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=3, max_length=50)
    description: str = Field(..., min_length=10, max_length=500)
    category: CommunityCategory = CommunityCategory.GENERAL
    is_private: bool = False
    require_approval: bool = False
    rules: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

class ModeratorUpdate(BaseModel):
    user_id: str

class MembershipResponse(BaseModel):
    message: str
    member_count: int

class MemberResponse(BaseModel):
    user: str
    joined_at: datetime
    role: MemberRole

class CommunityResponse(BaseModel):
    """Community response model"""
    id: str
    name: str
    slug: str
    description: str
    category: CommunityCategory
    avatar: str
    cover_image: str
    created_by: Optional[UserSummary] = None
    moderators: List[str] = Field(default_factory=list)
    members: List[MemberResponse] = Field(default_factory=list)
    settings: CommunitySettings
    rules: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    member_count: int = 0
    post_count: int = 0
    is_member: bool = False
    is_moderator: bool = False
    created_at: datetime
    updated_at: datetime

class CommunityListResponse(BaseModel):
    items: List[CommunityResponse]
    pagination: Pagination
