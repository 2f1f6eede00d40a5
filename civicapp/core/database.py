"""

civicapp/core/database.py

"""


from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING, GEOSPHERE, TEXT
from civicapp.core.config import settings
import logging

logger = logging.getLogger(__name__)

class Database:
    client: AsyncIOMotorClient = None
    db = None

db = Database()

async def connect_to_mongo():
    """Create database connection."""
    try:
        db.client = AsyncIOMotorClient(settings.MONGODB_URL)
        db.db = db.client[settings.DATABASE_NAME]

        # Create indexes for better performance
        await create_indexes()

        logger.info("Connected to MongoDB")
    except Exception as e:
        logger.error(f"Could not connect to MongoDB: {e}")
        raise

async def close_mongo_connection():
    """Close database connection."""
    if db.client:
        db.client.close()
        logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes for better performance"""
    try:
        # Complaint indexes
        await db.db.complaints.create_index([("location", GEOSPHERE)])
        await db.db.complaints.create_index([("status", ASCENDING), ("category", ASCENDING)])
        await db.db.complaints.create_index([("submitted_by", ASCENDING), ("created_at", DESCENDING)])
        await db.db.complaints.create_index([("community", ASCENDING), ("created_at", DESCENDING)])

        # Comment indexes
        await db.db.comments.create_index([("complaint", ASCENDING), ("created_at", DESCENDING)])
        await db.db.comments.create_index([("community_post", ASCENDING), ("created_at", DESCENDING)])
        await db.db.comments.create_index([("author", ASCENDING), ("created_at", DESCENDING)])
        await db.db.comments.create_index("parent_comment")

        # Community indexes
        await db.db.communities.create_index([("name", ASCENDING)], unique=True)
        await db.db.communities.create_index([("slug", ASCENDING)], unique=True)
        await db.db.communities.create_index([("category", ASCENDING), ("is_active", ASCENDING)])
        await db.db.communities.create_index([("name", TEXT), ("description", TEXT)])

        # Community post indexes
        await db.db.community_posts.create_index([("community", ASCENDING), ("created_at", DESCENDING)])
        await db.db.community_posts.create_index([("author", ASCENDING), ("created_at", DESCENDING)])
        await db.db.community_posts.create_index([
            ("type", ASCENDING),
            ("is_pinned", DESCENDING),
            ("created_at", DESCENDING)
        ])
        await db.db.community_posts.create_index([("title", TEXT), ("content", TEXT)])

        # User indexes
        await db.db.users.create_index([("email", ASCENDING)], unique=True)

        logger.info("Database indexes created")
    except Exception as e:
        logger.error(f"Error creating indexes: {e}")

def get_database():
    """Get database instance"""
    return db.db
