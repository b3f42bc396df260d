"""Feedback repository for MongoDB."""

from abc import ABC, abstractmethod

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import settings
from app.domains.feedback.models import FeedbackSubmission


class FeedbackRepositoryInterface(ABC):
    """Abstract repository interface for feedback submissions."""

    @abstractmethod
    async def create(self, submission: FeedbackSubmission) -> FeedbackSubmission:
        """Insert a submission and return it with its assigned id."""
        pass

    @abstractmethod
    async def get_by_id(self, feedback_id: str) -> FeedbackSubmission | None:
        """Get submission by ID."""
        pass

    @abstractmethod
    async def list_all(self) -> list[FeedbackSubmission]:
        """List every submission, newest first."""
        pass

    @abstractmethod
    async def delete(self, feedback_id: str) -> bool:
        """Delete a submission. Returns False if nothing was deleted."""
        pass

    @abstractmethod
    async def get_statistics(self) -> dict:
        """Get feedback statistics."""
        pass


def _to_object_id(feedback_id: str) -> ObjectId | None:
    try:
        return ObjectId(feedback_id)
    except (InvalidId, TypeError):
        return None


class MongoFeedbackRepository(FeedbackRepositoryInterface):
    """MongoDB implementation of feedback repository."""

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str | None = None):
        self._db = db
        self._collection = db[collection_name or settings.feedback_collection]

    async def create(self, submission: FeedbackSubmission) -> FeedbackSubmission:
        """Create a new feedback submission."""
        doc = submission.model_dump(by_alias=True, exclude={"id"})
        result = await self._collection.insert_one(doc)
        return submission.model_copy(update={"id": str(result.inserted_id)})

    async def get_by_id(self, feedback_id: str) -> FeedbackSubmission | None:
        """Get submission by ID."""
        object_id = _to_object_id(feedback_id)
        if object_id is None:
            return None
        doc = await self._collection.find_one({"_id": object_id})
        if not doc:
            return None
        doc["_id"] = str(doc["_id"])
        return FeedbackSubmission(**doc)

    async def list_all(self) -> list[FeedbackSubmission]:
        """List all submissions ordered by created_at descending."""
        cursor = self._collection.find({}).sort("created_at", -1)

        submissions = []
        async for doc in cursor:
            doc["_id"] = str(doc["_id"])
            submissions.append(FeedbackSubmission(**doc))
        return submissions

    async def delete(self, feedback_id: str) -> bool:
        """Hard delete a submission."""
        object_id = _to_object_id(feedback_id)
        if object_id is None:
            return False
        result = await self._collection.delete_one({"_id": object_id})
        return result.deleted_count > 0

    async def get_statistics(self) -> dict:
        """Get feedback statistics."""
        pipeline = [
            {
                "$facet": {
                    "totals": [
                        {
                            "$group": {
                                "_id": None,
                                "total": {"$sum": 1},
                                "avg_rating": {"$avg": "$overall_experience"},
                                "can_contact": {"$sum": {"$cond": ["$can_contact_again", 1, 0]}},
                                "can_publish": {
                                    "$sum": {"$cond": ["$permission_to_publish", 1, 0]}
                                },
                                "with_images": {
                                    "$sum": {
                                        "$cond": [
                                            {
                                                "$or": [
                                                    {"$ifNull": ["$before_image_url", False]},
                                                    {"$ifNull": ["$after_image_url", False]},
                                                ]
                                            },
                                            1,
                                            0,
                                        ]
                                    }
                                },
                            }
                        }
                    ],
                    "rating_distribution": [
                        {"$group": {"_id": "$overall_experience", "count": {"$sum": 1}}},
                    ],
                }
            }
        ]

        result = await self._collection.aggregate(pipeline).to_list(length=1)
        return summarize_statistics(result[0] if result else None)


def summarize_statistics(data: dict | None) -> dict:
    """Shape the aggregation output into statistics fields."""
    rating_dist = {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}

    if not data or not data.get("totals"):
        return {
            "total_submissions": 0,
            "average_rating": None,
            "rating_distribution": rating_dist,
            "can_contact_count": 0,
            "can_publish_count": 0,
            "with_images_count": 0,
        }

    totals = data["totals"][0]
    for item in data.get("rating_distribution", []):
        if item["_id"] in rating_dist:
            rating_dist[item["_id"]] = item["count"]

    avg_rating = totals.get("avg_rating")
    return {
        "total_submissions": totals.get("total", 0),
        "average_rating": round(avg_rating, 2) if avg_rating else None,
        "rating_distribution": rating_dist,
        "can_contact_count": totals.get("can_contact", 0),
        "can_publish_count": totals.get("can_publish", 0),
        "with_images_count": totals.get("with_images", 0),
    }
