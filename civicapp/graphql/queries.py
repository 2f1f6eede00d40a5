"""
GraphQL queries

civicapp/graphql/queries.py
"""
import strawberry
from typing import Optional
from civicapp.graphql.types import ComplaintType, CommunityType, StatusChangeType
from civicapp.services import repository


@strawberry.type
class Query:
    @strawberry.field
    async def complaint(self, id: str) -> Optional[ComplaintType]:
        """Get a complaint with its status history"""
        complaint = await repository.complaints.find(id)
        if not complaint:
            return None

        return ComplaintType(
            id=complaint.id,
            title=complaint.title,
            description=complaint.description,
            category=complaint.category.value,
            status=complaint.status.value,
            priority=complaint.priority.value,
            address=complaint.location.address,
            upvote_count=len(complaint.upvotes),
            downvote_count=len(complaint.downvotes),
            comment_count=len(complaint.comments),
            status_history=[
                StatusChangeType(
                    status=entry.status.value,
                    changed_by=entry.changed_by,
                    changed_at=entry.changed_at,
                    comment=entry.comment,
                )
                for entry in complaint.status_history
            ],
            created_at=complaint.created_at,
        )

    @strawberry.field
    async def community(self, id: str) -> Optional[CommunityType]:
        community = await repository.communities.find(id)
        if not community or not community.is_active:
            return None

        return CommunityType(
            id=community.id,
            name=community.name,
            slug=community.slug,
            description=community.description,
            category=community.category.value,
            member_count=community.member_count,
            post_count=community.post_count,
            created_at=community.created_at,
        )
