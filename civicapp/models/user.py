"""
civicapp/models/user.py

"""
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, EmailStr
from civicapp.models.base import BaseDocument, GeoPoint, PyObjectId, UserRole


class User(BaseDocument):
    """Account record; authentication itself lives outside this service"""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    avatar: Optional[str] = None
    role: UserRole = Field(default=UserRole.CITIZEN)
    communities: List[PyObjectId] = Field(default_factory=list)
    location: Optional[GeoPoint] = None
    is_active: bool = Field(default=True)

    # Leaderboard counters
    reputation_score: int = Field(default=0)
    complaints_submitted: int = Field(default=0, ge=0)

    @property
    def is_privileged(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.OFFICIAL)

    @property
    def has_location(self) -> bool:
        """The origin is what clients send before a location is known"""
        return self.location is not None and self.location.coordinates != [0, 0]


class UserSummary(BaseModel):
    """Populated author/submitter reference"""
    id: str
    name: str
    avatar: Optional[str] = None


class ComplaintStats(BaseModel):
    total: int = 0
    submitted: int = 0
    in_progress: int = 0
    resolved: int = 0
    rejected: int = 0


class UserProfileResponse(BaseModel):
    id: str
    name: str
    avatar: Optional[str] = None
    role: UserRole
    communities: List[str] = Field(default_factory=list)
    complaints_count: int = 0
    complaint_stats: ComplaintStats = Field(default_factory=ComplaintStats)
    reputation_score: int = 0


class RoleUpdate(BaseModel):
    role: UserRole


class LocationUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = Field(None, min_length=5)


class UserRankEntry(BaseModel):
    """A user as listed on the leaderboard and in search results"""
    id: str
    name: str
    avatar: Optional[str] = None
    reputation_score: int = 0
    complaints_submitted: int = 0
