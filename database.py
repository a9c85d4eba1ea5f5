from motor.motor_asyncio import AsyncIOMotorClient
from config import MONGO_URL, DB_NAME

client = AsyncIOMotorClient(MONGO_URL)
db = client[DB_NAME]


def get_db():
    """FastAPI dependency for the database handle. Overridden in tests."""
    return db
