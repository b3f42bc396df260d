#!/usr/bin/env python3
"""
Seed script to create initial data for development and testing.

Sets up:
- A handful of sample feedback submissions (no images)
- A bcrypt hash for the reviewer password, to paste into .env

Usage:
    python scripts/seed_data.py [reviewer-password]

The script will output the settings needed to log in to the dashboard.
"""

import asyncio
import sys
from datetime import date, timedelta
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.config import settings
from app.core.security import hash_password
from app.db.mongodb import (
    close_mongodb,
    connect_mongodb,
    get_gridfs_bucket,
    get_mongodb,
)
from app.domains.feedback.models import ServiceRating
from app.domains.feedback.repository import MongoFeedbackRepository
from app.domains.feedback.schemas import FeedbackCreate
from app.domains.feedback.service import FeedbackService
from app.domains.feedback.storage import GridFSBlobStore

# Email contacts are templates filled with the configured contact domain
SAMPLES = [
    ("Jane Doe", "jane@{domain}", 5, ServiceRating.EXCELLENT, True),
    ("John Smith", "555-123-4567", 3, ServiceRating.AVERAGE, False),
    ("Priya Patel", "(555) 987-6543", 4, ServiceRating.GOOD, True),
    ("Sam Lee", "sam.lee@{domain}", 1, ServiceRating.POOR, False),
]


def build_samples(domain: str | None = None, today: date | None = None) -> list[FeedbackCreate]:
    """Sample form submissions whose emails use the given contact domain."""
    domain = domain or settings.contact_email_domain
    today = today or date.today()
    samples = []
    for offset, (name, contact, overall, rating, can_contact) in enumerate(SAMPLES):
        samples.append(
            FeedbackCreate(
                name=name,
                contact=contact.format(domain=domain),
                date_of_experience=(today - timedelta(days=7 * (offset + 1))).isoformat(),
                overall_experience=overall,
                quality_of_service=rating,
                timeliness=rating,
                professionalism=rating,
                communication_ease=rating,
                liked_most="Friendly team",
                suggestions="" if offset % 2 else "Faster scheduling",
                would_recommend="Yes" if overall >= 3 else "No",
                permission_to_publish=overall >= 4,
                can_contact_again=can_contact,
            )
        )
    return samples


async def seed_database():
    """Create sample submissions unless the collection already has data."""
    db = get_mongodb()
    repo = MongoFeedbackRepository(db)

    if await db[settings.feedback_collection].count_documents({}, limit=1):
        print("Database already has data. Skipping seed.")
        return

    service = FeedbackService(
        repository=repo,
        blob_store=GridFSBlobStore(get_gridfs_bucket()),
        public_base_url=settings.storage_public_base_url,
        contact_domain=settings.contact_email_domain,
    )

    print("Creating seed data...")
    print("-" * 50)

    for data in build_samples():
        created = await service.submit(data)
        print(
            f"  Created feedback {created.id} "
            f"({data.name}, {data.overall_experience} stars)"
        )


async def main():
    """Main entry point."""
    print(f"Environment: {settings.environment}")
    print(f"Database: {settings.mongodb_url}/{settings.mongodb_database}")
    print()

    await connect_mongodb()
    try:
        await seed_database()
    finally:
        await close_mongodb()

    if len(sys.argv) > 1:
        print("\n--- Reviewer Login ---\n")
        print(f"  REVIEWER_EMAIL={settings.reviewer_email}")
        print(f"  REVIEWER_PASSWORD_HASH='{hash_password(sys.argv[1])}'")
        print("  POST /v1/auth/login")


if __name__ == "__main__":
    asyncio.run(main())
