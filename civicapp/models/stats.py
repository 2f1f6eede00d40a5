"""
civicapp/models/stats.py

Dashboard, leaderboard and admin statistics responses
"""
from typing import Dict, List
from pydantic import BaseModel, Field
from civicapp.models.base import Pagination
from civicapp.models.community import CommunityResponse
from civicapp.models.complaint import ComplaintResponse
from civicapp.models.user import ComplaintStats, UserRankEntry


class DashboardResponse(BaseModel):
    recent_complaints: List[ComplaintResponse] = Field(default_factory=list)
    communities: List[CommunityResponse] = Field(default_factory=list)
    complaint_stats: ComplaintStats
    nearby_complaints: List[ComplaintResponse] = Field(default_factory=list)

class UserRankListResponse(BaseModel):
    items: List[UserRankEntry]
    pagination: Pagination

class UserTotals(BaseModel):
    total: int
    new_this_month: int

class ComplaintTotals(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_category: Dict[str, int]

class CommunityTotals(BaseModel):
    total: int
    by_category: Dict[str, int]

class AdminStatsResponse(BaseModel):
    user_stats: UserTotals
    complaint_stats: ComplaintTotals
    community_stats: CommunityTotals
    recent_activity: List[ComplaintResponse] = Field(default_factory=list)
