"""

civicapp/models/__init__.py

"""


from civicapp.models.base import *
from civicapp.models.user import *
from civicapp.models.complaint import *
from civicapp.models.comment import *
from civicapp.models.community import *
from civicapp.models.post import *

__all__ = [
    # Base
    "PyObjectId",
    "EngagementSet",
    "UserRole",
    "ComplaintCategory",
    "CommunityCategory",
    "ComplaintStatus",
    "Priority",
    "MemberRole",
    "PostType",
    "VoteType",
    "VoteState",
    "BaseDocument",
    "GeoPoint",
    "ImageRef",
    "Report",
    "Pagination",

    # User models
    "User",
    "UserSummary",

    # Complaint models
    "Complaint",
    "StatusChange",
    "ResolutionDetails",

    # Comment models
    "Comment",
    "CommentEdit",
    "DELETED_PLACEHOLDER",

    # Community models
    "Community",
    "MemberRecord",
    "CommunitySettings",

    # Post models
    "CommunityPost",
    "PostEdit",
]
