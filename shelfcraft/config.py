"""Configuration management."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration."""
    
    # Geometry (millimeters)
    PX_PER_MM = float(os.getenv("SHELF_PX_PER_MM", "1.2"))
    DEFAULT_HEIGHT = float(os.getenv("SHELF_DEFAULT_HEIGHT", "210"))
    DEFAULT_WIDTH = float(os.getenv("SHELF_DEFAULT_WIDTH", "25"))
    DEFAULT_COLOR = os.getenv("SHELF_DEFAULT_COLOR", "#555555")
    
    # Placeholders for blank catalog cells
    DEFAULT_TITLE = "Untitled"
    DEFAULT_AUTHOR = "Unknown author"
    DEFAULT_GENRE = "Unknown"
    DEFAULT_SHELF_NAME = "New shelf"
    
    DEFAULT_SHELF_COUNT = int(os.getenv("SHELF_COUNT", "3"))
    
    # Published spreadsheet (tab separated)
    SHEET_URL = os.getenv("SHEET_URL", "")
    
    # Database
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME", "shelfcraft")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")
    
    @property
    def DATABASE_URL(self):
        """Build PostgreSQL connection string."""
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
    
    # HTTP
    DEFAULT_TIMEOUT = int(os.getenv("DEFAULT_TIMEOUT", "10"))
    DEFAULT_MAX_RETRIES = int(os.getenv("DEFAULT_MAX_RETRIES", "3"))
    DEFAULT_CACHE_TTL = int(os.getenv("DEFAULT_CACHE_TTL", "3600"))
