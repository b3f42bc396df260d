"""MongoDB database connection using Motor (async driver)."""

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorDatabase,
    AsyncIOMotorGridFSBucket,
)

from app.core.config import settings

# Global MongoDB client and database instances
mongodb_client: AsyncIOMotorClient | None = None
mongodb_db: AsyncIOMotorDatabase | None = None


async def connect_mongodb() -> None:
    """Connect to MongoDB."""
    global mongodb_client, mongodb_db

    mongodb_client = AsyncIOMotorClient(
        settings.mongodb_url,
        maxPoolSize=50,  # Connection pool size
        minPoolSize=5,  # Minimum connections to keep
        maxIdleTimeMS=30000,  # Close idle connections after 30s
        connectTimeoutMS=5000,  # Connection timeout
        serverSelectionTimeoutMS=5000,  # Server selection timeout
    )
    mongodb_db = mongodb_client[settings.mongodb_database]

    # Test connection
    try:
        await mongodb_client.admin.command("ping")
        print(f"Connected to MongoDB: {settings.mongodb_database}")
    except Exception as e:
        print(f"Failed to connect to MongoDB: {e}")
        raise

    await ensure_indexes()


async def close_mongodb() -> None:
    """Close MongoDB connection."""
    global mongodb_client, mongodb_db

    if mongodb_client:
        mongodb_client.close()
        mongodb_client = None
        mongodb_db = None
        print("MongoDB connection closed")


def get_mongodb() -> AsyncIOMotorDatabase:
    """
    Get MongoDB database instance.

    Usage:
        @app.get("/")
        async def endpoint(db: AsyncIOMotorDatabase = Depends(get_mongodb)):
            collection = db["feedback_submissions"]
            ...
    """
    if mongodb_db is None:
        raise RuntimeError("MongoDB is not connected")
    return mongodb_db


def get_gridfs_bucket() -> AsyncIOMotorGridFSBucket:
    """Get the GridFS bucket holding uploaded feedback images."""
    return AsyncIOMotorGridFSBucket(get_mongodb(), bucket_name=settings.storage_bucket)


async def ensure_indexes() -> None:
    """
    Create indexes for the feedback collection.

    Listing is always newest first, and image keys are looked up by filename.
    """
    db = get_mongodb()

    feedback_col = db[settings.feedback_collection]
    await feedback_col.create_index([("created_at", -1)])

    files_col = db[f"{settings.storage_bucket}.files"]
    await files_col.create_index("filename", unique=True)

    print(f"Created indexes for {settings.feedback_collection}")
