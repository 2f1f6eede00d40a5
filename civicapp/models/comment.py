"""
civicapp/models/comment.py

"""
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, model_validator
from civicapp.models.base import BaseDocument, PyObjectId, EngagementSet, Report, Pagination
from civicapp.models.user import UserSummary

DELETED_PLACEHOLDER = "[This comment has been deleted]"


class CommentEdit(BaseModel):
    """Content as it was before an edit"""
    content: str
    edited_at: datetime = Field(default_factory=datetime.utcnow)

class Comment(BaseDocument):
    """Comment document model"""
    content: str = Field(..., min_length=1, max_length=500)
    author: PyObjectId

    # Exactly one parent context
    complaint: Optional[PyObjectId] = None
    community_post: Optional[PyObjectId] = None

    # Threading
    parent_comment: Optional[PyObjectId] = None
    replies: List[PyObjectId] = Field(default_factory=list)

    likes: EngagementSet = Field(default_factory=dict)

    is_edited: bool = Field(default=False)
    edit_history: List[CommentEdit] = Field(default_factory=list)

    is_deleted: bool = Field(default=False)
    deleted_at: Optional[datetime] = None

    reports: List[Report] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_parent_context(self):
        """A comment belongs to a complaint or a community post, never both"""
        if bool(self.complaint) == bool(self.community_post):
            raise ValueError("Exactly one of complaint or community post is required")
        return self

    @property
    def like_count(self) -> int:
        return len(self.likes)

    @property
    def reply_count(self) -> int:
        return len(self.replies)


class CommentCreate(BaseModel):
    """Create comment request model"""
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=500)
    complaint: Optional[str] = None
    community_post: Optional[str] = None
    parent_comment: Optional[str] = None

class CommentUpdate(BaseModel):
    """Update comment request model"""
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=500)

class ReportCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    reason: str = Field(..., min_length=1, max_length=500)

class LikeResponse(BaseModel):
    message: str
    like_count: int
    has_liked: bool

class CommentResponse(BaseModel):
    """Comment response model"""
    id: str
    content: str
    author: Optional[UserSummary] = None
    complaint: Optional[str] = None
    community_post: Optional[str] = None
    parent_comment: Optional[str] = None
    replies: List["CommentResponse"] = Field(default_factory=list)
    like_count: int = 0
    reply_count: int = 0
    has_liked: bool = False
    is_edited: bool = False
    edit_history: List[CommentEdit] = Field(default_factory=list)
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

class CommentListResponse(BaseModel):
    items: List[CommentResponse]
    pagination: Pagination
