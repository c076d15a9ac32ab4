"""Seed script: load demo submissions for local dashboard work.

Usage:
    python scripts/seed_submissions.py            # 25 submissions
    python scripts/seed_submissions.py --count 100

Uses DATABASE_URL from .env (defaults to ./submissions.db).
"""

import argparse
import asyncio
import logging
import os
import random
import sys

# Ensure src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

logging.basicConfig(level=logging.INFO, format="%(levelname)s  %(message)s")
logger = logging.getLogger(__name__)

FIRST_NAMES = ["Jane", "Carlos", "Priya", "Tom", "Aisha", "Luc", "Mei", "Sam"]
LAST_NAMES = ["Doe", "Garcia", "Patel", "Nguyen", "Okafor", "Tremblay", "Chen"]
MESSAGES = [
    "Looking for a quote for a 3 bedroom move next month.",
    "Please call ASAP, our closing date moved up.",
    "Do you offer packing services?",
    "Emergency: the other company cancelled, we move Friday.",
    "Just comparing prices for now.",
    "Need someone to pick up a piano, not urgent.",
]
SOURCES = ["Website Form", "n8n", "Facebook Ad", "Referral"]
TYPES = ["moving", "contact", "quote", "service_request", "other"]


def _payload(rng: random.Random) -> dict:
    first, last = rng.choice(FIRST_NAMES), rng.choice(LAST_NAMES)
    kind = rng.choice(TYPES)
    payload = {
        "name": f"{first} {last}",
        "email": f"{first}.{last}{rng.randint(1, 999)}@example.com",
        "phone": f"+1555{rng.randint(1000000, 9999999)}",
        "message": rng.choice(MESSAGES),
        "submissionType": kind,
        "source": rng.choice(SOURCES),
    }
    if kind == "moving":
        payload["movingDetails"] = {
            "movingDate": "2026-11-15",
            "firstAddress": "12 Rue Principale, Montreal",
            "secondAddress": "400 Elm St, Ottawa",
            "numberOfRooms": str(rng.randint(1, 5)),
        }
    if rng.random() < 0.15:
        payload["metadata"] = {"processingErrors": ["Could not parse moving date"]}
    return payload


async def seed(count: int, seed_value: int) -> None:
    from submission_api.infra.database import async_session, init_db
    from submission_api.infra.submission_store import SubmissionStore
    from submission_api.services.submission_service import SubmissionService

    await init_db()

    service = SubmissionService(SubmissionStore(async_session))
    rng = random.Random(seed_value)

    created = 0
    for _ in range(count):
        submission = await service.create(_payload(rng), user_agent="seed-script")
        created += 1
        logger.info(
            "  [%s] %s <%s> %s/%s",
            submission["id"], submission["name"], submission["email"],
            submission["submissionType"], submission["priority"],
        )

    logger.info("Done. Created %d submissions.", created)


def main() -> None:
    parser = argparse.ArgumentParser(description="Load demo submissions.")
    parser.add_argument("--count", type=int, default=25, help="number of submissions to create")
    parser.add_argument("--seed", type=int, default=42, help="random seed for reproducible data")
    args = parser.parse_args()
    asyncio.run(seed(args.count, args.seed))


if __name__ == "__main__":
    main()
