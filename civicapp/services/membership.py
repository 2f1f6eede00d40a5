"""
Community membership and moderator checks

civicapp/services/membership.py

"""
from datetime import datetime
from typing import Optional, Tuple
from civicapp.core.exceptions import AuthorizationDenied, InvalidState, NotFound
from civicapp.models.base import CommunityCategory, MemberRole
from civicapp.models.community import Community, CommunitySettings, MemberRecord


def is_member(community: Community, user_id: str) -> bool:
    return any(member.user == user_id for member in community.members)


def is_moderator(community: Community, user_id: str) -> bool:
    """Moderators are the listed moderators plus the creator"""
    return user_id == community.created_by or user_id in community.moderators


def member_role(community: Community, user_id: str) -> Optional[MemberRole]:
    for member in community.members:
        if member.user == user_id:
            return member.role
    return None


def new_community(
    name: str,
    description: str,
    creator_id: str,
    category: CommunityCategory = CommunityCategory.GENERAL,
    settings: Optional[CommunitySettings] = None,
    **extra,
) -> Community:
    """Build a community whose creator is its first member, as admin and moderator"""
    return Community(
        name=name,
        description=description,
        category=category,
        created_by=creator_id,
        moderators=[creator_id],
        members=[MemberRecord(user=creator_id, role=MemberRole.ADMIN)],
        settings=settings or CommunitySettings(),
        **extra,
    )


def add_member(community: Community, user_id: str, role: MemberRole = MemberRole.MEMBER) -> Community:
    """Append a member record; does nothing if the user is already a member"""
    if is_member(community, user_id):
        return community
    community = community.model_copy(deep=True)
    community.members.append(MemberRecord(user=user_id, role=role))
    community.updated_at = datetime.utcnow()
    return community


def remove_member(community: Community, user_id: str) -> Community:
    """Drop every member record for the user. The creator can never be removed."""
    if user_id == community.created_by:
        raise InvalidState("Community creator cannot leave the community")
    community = community.model_copy(deep=True)
    community.members = [m for m in community.members if m.user != user_id]
    community.moderators = [m for m in community.moderators if m != user_id]
    community.updated_at = datetime.utcnow()
    return community


def join(community: Community, user_id: str) -> Tuple[Community, int]:
    """Join on behalf of the caller; joining twice is reported, not ignored"""
    _ensure_active(community)
    if is_member(community, user_id):
        raise InvalidState("Already a member of this community")
    community = add_member(community, user_id)
    return community, community.member_count


def leave(community: Community, user_id: str) -> Tuple[Community, int]:
    _ensure_active(community)
    if not is_member(community, user_id):
        raise InvalidState("Not a member of this community")
    community = remove_member(community, user_id)
    return community, community.member_count


def promote_moderator(community: Community, actor_id: str, user_id: str) -> Tuple[Community, int]:
    """Creator-only: make an existing member a moderator"""
    if actor_id != community.created_by:
        raise AuthorizationDenied("Only the community creator can appoint moderators")
    if not is_member(community, user_id):
        raise InvalidState("Moderators must be community members")
    if user_id in community.moderators:
        raise InvalidState("User is already a moderator")

    community = community.model_copy(deep=True)
    community.moderators.append(user_id)
    for member in community.members:
        if member.user == user_id and member.role == MemberRole.MEMBER:
            member.role = MemberRole.MODERATOR
    community.updated_at = datetime.utcnow()
    return community, len(community.moderators)


def _ensure_active(community: Community) -> None:
    if not community.is_active:
        raise NotFound("Community not found")
