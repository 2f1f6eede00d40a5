"""
API v1 routers

civicapp/api/v1/__init__.py
"""
from fastapi import APIRouter

# Create the main API router
api_router = APIRouter()

# Import individual routers
from civicapp.api.v1.complaints import router as complaints_router
from civicapp.api.v1.comments import router as comments_router
from civicapp.api.v1.communities import router as communities_router
from civicapp.api.v1.posts import router as posts_router
from civicapp.api.v1.users import router as users_router


# Include all routers
api_router.include_router(complaints_router, prefix="/complaints", tags=["complaints"])
api_router.include_router(comments_router, prefix="/comments", tags=["comments"])
api_router.include_router(communities_router, prefix="/communities", tags=["communities"])
api_router.include_router(posts_router, prefix="/posts", tags=["posts"])
api_router.include_router(users_router, prefix="/users", tags=["users"])
