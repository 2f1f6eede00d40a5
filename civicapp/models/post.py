"""
civicapp/models/post.py

"""
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from civicapp.models.base import (
    BaseDocument, PyObjectId, EngagementSet, ImageRef, Report, Pagination, PostType,
)
from civicapp.models.user import UserSummary


class PostEdit(BaseModel):
    """Title and content as they were before an edit"""
    title: str
    content: str
    edited_at: datetime = Field(default_factory=datetime.utcnow)

class CommunityPost(BaseDocument):
    """Community post document model"""
    title: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1, max_length=2000)
    author: PyObjectId
    community: PyObjectId
    type: PostType = Field(default=PostType.DISCUSSION)
    images: List[ImageRef] = Field(default_factory=list)
    related_complaint: Optional[PyObjectId] = None
    tags: List[str] = Field(default_factory=list)

    comments: List[PyObjectId] = Field(default_factory=list)
    likes: EngagementSet = Field(default_factory=dict)
    views: EngagementSet = Field(default_factory=dict)

    is_pinned: bool = Field(default=False)
    is_locked: bool = Field(default=False)
    is_edited: bool = Field(default=False)
    edit_history: List[PostEdit] = Field(default_factory=list)
    reports: List[Report] = Field(default_factory=list)

    @property
    def like_count(self) -> int:
        return len(self.likes)

    @property
    def view_count(self) -> int:
        return len(self.views)

    @property
    def comment_count(self) -> int:
        return len(self.comments)


class PostCreate(BaseModel):
    """Create post request model"""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=5, max_length=100)
    content: str = Field(..., min_length=10, max_length=2000)
    type: PostType = PostType.DISCUSSION
    related_complaint: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

class PostUpdate(BaseModel):
    """Update post request model"""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=5, max_length=100)
    content: Optional[str] = Field(None, min_length=10, max_length=2000)

class PostResponse(BaseModel):
    """Post response model"""
    id: str
    title: str
    content: str
    author: Optional[UserSummary] = None
    community: str
    type: PostType
    images: List[ImageRef] = Field(default_factory=list)
    related_complaint: Optional[dict] = None
    tags: List[str] = Field(default_factory=list)
    like_count: int = 0
    view_count: int = 0
    comment_count: int = 0
    has_liked: bool = False
    is_pinned: bool = False
    is_locked: bool = False
    is_edited: bool = False
    edit_history: List[PostEdit] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

class PostListResponse(BaseModel):
    items: List[PostResponse]
    pagination: Pagination
