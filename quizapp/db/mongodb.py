from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from quizapp.core.config import Settings
import logging

logger = logging.getLogger(__name__)


class MongoDB:
    """Owns the Motor client for one application instance"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client: AsyncIOMotorClient = None

    async def connect(self) -> AsyncIOMotorDatabase:
        """Connect to MongoDB and test the connection"""
        try:
            self.client = AsyncIOMotorClient(self.settings.mongodb_url, tz_aware=True)
            # Test connection
            await self.client.admin.command('ping')
            logger.info(f"✓ Connected to MongoDB at {self.settings.mongodb_url}")
        except Exception as e:
            logger.error(f"✗ Failed to connect to MongoDB: {e}")
            raise
        return self.get_database()

    async def close(self):
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            self.client = None
            logger.info("✓ Closed MongoDB connection")

    async def ping(self) -> bool:
        """Health probe used by /health"""
        if not self.client:
            return False
        try:
            await self.client.admin.command('ping')
            return True
        except Exception as e:
            logger.error(f"❌ MongoDB ping failed: {e}")
            return False

    def get_database(self) -> AsyncIOMotorDatabase:
        """Get the database instance"""
        return self.client[self.settings.database_name]
