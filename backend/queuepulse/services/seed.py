"""
Sample data for development and demos.

Creates three location types and six locations with realistic
service times. Does nothing if any location type already exists.
"""

import logging

from queuepulse.services.storage import QueueStorage

logger = logging.getLogger(__name__)

LOCATION_TYPES = [
    {"key": "bank", "name": "Bank", "icon": "credit-card"},
    {"key": "hospital", "name": "Hospital", "icon": "activity"},
    {"key": "government", "name": "Government Office", "icon": "briefcase"},
]

# Service times are minutes per person ahead, tune them with real data
SAMPLE_LOCATIONS = [
    {
        "name": "First National Bank - Downtown",
        "address": "123 Main Street, Downtown",
        "type": "bank",
        "average_service_time": 8,
    },
    {
        "name": "City Hospital - Emergency",
        "address": "456 Health Ave, Medical District",
        "type": "hospital",
        "average_service_time": 15,
    },
    {
        "name": "DMV - Central Office",
        "address": "789 Government Blvd, Civic Center",
        "type": "government",
        "average_service_time": 12,
    },
    {
        "name": "Chase Bank - Mall Branch",
        "address": "321 Shopping Center Dr",
        "type": "bank",
        "average_service_time": 6,
    },
    {
        "name": "Community Clinic",
        "address": "555 Wellness Way",
        "type": "hospital",
        "average_service_time": 10,
    },
    {
        "name": "Social Security Office",
        "address": "888 Federal Plaza",
        "type": "government",
        "average_service_time": 20,
    },
]


async def seed_sample_data(storage: QueueStorage, timezone: str = "UTC") -> bool:
    """
    Seed location types and locations.

    Returns:
        True if data was created, False if it was already there
    """
    existing = await storage.list_location_types()
    if existing:
        logger.info("Seed skipped: %d location types already exist", len(existing))
        return False

    type_ids = {}
    for type_data in LOCATION_TYPES:
        location_type = await storage.create_location_type(
            name=type_data["name"],
            icon=type_data["icon"],
        )
        type_ids[type_data["key"]] = location_type.id

    for loc in SAMPLE_LOCATIONS:
        await storage.create_location(
            name=loc["name"],
            address=loc["address"],
            type_id=type_ids[loc["type"]],
            average_service_time=loc["average_service_time"],
            timezone=timezone,
        )

    logger.info(
        "Seeded %d location types and %d locations",
        len(LOCATION_TYPES),
        len(SAMPLE_LOCATIONS),
    )
    return True
