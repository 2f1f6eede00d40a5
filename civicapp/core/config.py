"""

civicapp/core/config.py

"""


from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # App
    APP_NAME: str = "CivicReports"
    DEBUG: bool = True
    SECRET_KEY: str

    # Database
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "civic-issues"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:3001"]

    # Auth
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    ALGORITHM: str = "HS256"

    # File Upload
    MAX_UPLOAD_SIZE: int = 10485760  # 10MB

    # Engagement rules
    COMMENT_EDIT_WINDOW_HOURS: int = 24
    MUTATION_MAX_ATTEMPTS: int = 5

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Real-time notifications
    NOTIFICATION_QUEUE_SIZE: int = 100

    # DigitalOcean Spaces
    DO_SPACES_ACCESS_KEY_ID: str = ""
    DO_SPACES_SECRET_KEY: str = ""
    DO_SPACES_BUCKET_NAME: str = ""
    DO_SPACES_ENDPOINT: str = ""
    DO_SPACES_CDN_URL: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
