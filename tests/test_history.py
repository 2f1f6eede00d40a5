from datetime import datetime, timedelta

import pytest

from civicapp.core.exceptions import AuthorizationDenied, NotFound
from civicapp.models.base import ComplaintStatus, GeoPoint, UserRole
from civicapp.models.comment import Comment
from civicapp.models.complaint import Complaint
from civicapp.models.post import CommunityPost
from civicapp.models.user import User
from civicapp.services.history import (
    edit_window_open, record_comment_edit, record_post_edit, record_status_change,
)

ADMIN = User(id="650000000000000000000ad1", name="Admin", email="admin@example.com", role=UserRole.ADMIN)
OFFICIAL = User(id="650000000000000000000f01", name="Official", email="official@example.com",
                role=UserRole.OFFICIAL)
CITIZEN = User(id="650000000000000000000aaa", name="Citizen", email="citizen@example.com")


def _complaint(**overrides):
    data = dict(
        id="650000000000000000000001",
        title="Overflowing garbage bin",
        description="The bin near the bus stop is overflowing",
        category="Sanitation",
        location=GeoPoint(coordinates=[77.59, 12.97]),
        submitted_by=CITIZEN.id,
    )
    data.update(overrides)
    return Complaint(**data)


def test_status_history_follows_each_transition():
    complaint = _complaint()
    complaint = record_status_change(complaint, ComplaintStatus.IN_PROGRESS, ADMIN, "crew assigned")
    assert complaint.resolution_details is None

    complaint = record_status_change(complaint, ComplaintStatus.RESOLVED, ADMIN, "fixed")

    assert [entry.status for entry in complaint.status_history] == [
        ComplaintStatus.IN_PROGRESS, ComplaintStatus.RESOLVED,
    ]
    assert complaint.status == ComplaintStatus.RESOLVED
    assert complaint.status_history[-1].changed_by == ADMIN.id
    assert complaint.resolution_details.resolved_by == ADMIN.id
    assert complaint.resolution_details.description == "fixed"


def test_assigned_official_may_change_status():
    complaint = _complaint(assigned_to=OFFICIAL.id)
    complaint = record_status_change(complaint, "In Progress", OFFICIAL)
    assert complaint.status == ComplaintStatus.IN_PROGRESS


@pytest.mark.parametrize("actor", [CITIZEN, OFFICIAL])
def test_others_may_not_change_status(actor):
    complaint = _complaint()
    with pytest.raises(AuthorizationDenied):
        record_status_change(complaint, ComplaintStatus.REJECTED, actor)
    assert complaint.status_history == []


def test_comment_edit_keeps_previous_content():
    comment = Comment(content="A", author=CITIZEN.id, complaint="650000000000000000000001")
    comment = record_comment_edit(comment, CITIZEN.id, "B")

    assert comment.content == "B"
    assert comment.is_edited
    assert comment.edit_history[-1].content == "A"


def test_unchanged_comment_content_is_not_logged():
    comment = Comment(content="Same", author=CITIZEN.id, complaint="650000000000000000000001")
    comment = record_comment_edit(comment, CITIZEN.id, "  Same ")
    assert comment.edit_history == []
    assert not comment.is_edited


def test_comment_edit_window():
    created = datetime.utcnow() - timedelta(hours=25)
    comment = Comment(content="Old", author=CITIZEN.id, complaint="650000000000000000000001",
                      created_at=created)

    assert not edit_window_open(comment)
    with pytest.raises(AuthorizationDenied, match="too old"):
        record_comment_edit(comment, CITIZEN.id, "New")
    assert edit_window_open(comment, now=created + timedelta(hours=23))


def test_only_author_edits_comment():
    comment = Comment(content="Mine", author=CITIZEN.id, complaint="650000000000000000000001")
    with pytest.raises(AuthorizationDenied):
        record_comment_edit(comment, ADMIN.id, "Theirs")


def test_deleted_comment_cannot_be_edited():
    comment = Comment(content="gone", author=CITIZEN.id, complaint="650000000000000000000001",
                      is_deleted=True)
    with pytest.raises(NotFound):
        record_comment_edit(comment, CITIZEN.id, "back")


def test_post_edit_keeps_previous_title_and_content():
    post = CommunityPost(title="Old title", content="Old content here", author=CITIZEN.id,
                         community="650000000000000000000c01")
    post = record_post_edit(post, CITIZEN.id, title="New title")

    assert post.title == "New title"
    assert post.content == "Old content here"
    assert post.is_edited
    assert (post.edit_history[-1].title, post.edit_history[-1].content) == ("Old title", "Old content here")

    with pytest.raises(AuthorizationDenied):
        record_post_edit(post, ADMIN.id, content="Hijacked content")
