"""
GraphQL type definitions

civicapp/graphql/types.py

"""
import strawberry
from typing import List, Optional
from datetime import datetime
from strawberry.scalars import JSON


@strawberry.type
class StatusChangeType:
    status: str
    changed_at: datetime
    changed_by: Optional[str] = None
    comment: Optional[str] = None

@strawberry.type
class ComplaintType:
    id: str
    title: str
    description: str
    category: str
    status: str
    priority: str
    status_history: List[StatusChangeType]
    created_at: datetime
    address: Optional[str] = None
    upvote_count: int = 0
    downvote_count: int = 0
    comment_count: int = 0

@strawberry.type
class CommunityType:
    id: str
    name: str
    slug: str
    description: str
    category: str
    created_at: datetime
    member_count: int = 0
    post_count: int = 0

@strawberry.type
class EventType:
    event: str
    payload: JSON
    emitted_at: datetime
    room: Optional[str] = None
