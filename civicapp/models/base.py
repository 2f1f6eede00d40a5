"""
civicapp/models/base.py
"""


from datetime import datetime
from typing import Optional, List, Dict
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator
from bson import ObjectId

# Identifiers travel as hex strings; ObjectId conversion happens in the database layer
PyObjectId = str

# Engagement sets map a user id to the moment the engagement happened
EngagementSet = Dict[PyObjectId, datetime]

# Enums
class UserRole(str, Enum):
    CITIZEN = "citizen"
    OFFICIAL = "official"
    ADMIN = "admin"

class ComplaintCategory(str, Enum):
    SANITATION = "Sanitation"
    ROADS = "Roads"
    WATER = "Water"
    ELECTRICITY = "Electricity"
    PARKS = "Parks"
    TRANSPORT = "Transport"
    HEALTH = "Health"
    OTHER = "Other"

class CommunityCategory(str, Enum):
    SANITATION = "Sanitation"
    ROADS = "Roads"
    WATER = "Water"
    ELECTRICITY = "Electricity"
    PARKS = "Parks"
    TRANSPORT = "Transport"
    HEALTH = "Health"
    GENERAL = "General"
    OTHER = "Other"

class ComplaintStatus(str, Enum):
    SUBMITTED = "Submitted"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    REJECTED = "Rejected"

class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

class MemberRole(str, Enum):
    MEMBER = "member"
    MODERATOR = "moderator"
    ADMIN = "admin"

class PostType(str, Enum):
    DISCUSSION = "discussion"
    ANNOUNCEMENT = "announcement"
    QUESTION = "question"
    UPDATE = "update"

class VoteType(str, Enum):
    UP = "up"
    DOWN = "down"

class VoteState(str, Enum):
    NONE = "none"
    UP = "up"
    DOWN = "down"

# Base Models
class BaseDocument(BaseModel):
    """Base model for all documents with common fields"""
    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    id: Optional[str] = Field(default=None, alias="_id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    # Bumped on every write; guards read-modify-write cycles
    version: int = Field(default=0, ge=0)

    @classmethod
    def from_mongo(cls, doc: dict):
        """Build a model from a raw MongoDB document"""
        data = dict(doc)
        if isinstance(data.get("_id"), ObjectId):
            data["_id"] = str(data["_id"])
        return cls.model_validate(data)

    def to_mongo(self) -> dict:
        """Dump to a MongoDB document, with `_id` as an ObjectId"""
        data = self.model_dump(by_alias=True, mode="python")
        data = _enum_values(data)
        if data.get("_id"):
            data["_id"] = ObjectId(data["_id"])
        else:
            data.pop("_id", None)
        return data


def _enum_values(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _enum_values(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_enum_values(v) for v in value]
    return value


# Shared sub-documents
class GeoPoint(BaseModel):
    """GeoJSON point with a human readable address"""
    type: str = Field(default="Point", pattern="^Point$")
    coordinates: List[float] = Field(..., min_length=2, max_length=2)
    address: Optional[str] = None

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, coords: List[float]) -> List[float]:
        """Coordinates are [longitude, latitude]"""
        lng, lat = coords
        if not (-180 <= lng <= 180 and -90 <= lat <= 90):
            raise ValueError("Invalid coordinates")
        return coords

class ImageRef(BaseModel):
    """Uploaded image reference"""
    url: str
    caption: Optional[str] = ""
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)

class Report(BaseModel):
    """Abuse report filed against a comment or post"""
    reported_by: PyObjectId
    reason: str = Field(..., min_length=1, max_length=500)
    reported_at: datetime = Field(default_factory=datetime.utcnow)

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int
