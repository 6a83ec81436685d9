"""
Seed demo wards and beds.

Usage: DATABASE_URL=... DATABASE_NAME=... python seed.py
Existing wards, beds and audit entries are removed first.
"""

import logging

from pymongo.database import Database

from database import get_database
from schemas import Bed, Ward, MAINTENANCE
from services import WardService

logger = logging.getLogger(__name__)

DEMO_WARDS = [
    # name, type, capacity, bed prefix, features
    ("Intensive Care Unit", "icu", 3, "ICU", ["Ventilator", "Cardiac Monitor"]),
    ("General Ward A", "general", 4, "GW", ["Oxygen Supply"]),
    ("Private Ward B", "private", 2, "PW", ["Private Bathroom", "TV"]),
    ("Emergency Bay", "emergency", 2, "ER", ["Cardiac Monitor"]),
]


def seed(db: Database) -> WardService:
    for name in ("ward", "bed", "auditlog"):
        db[name].delete_many({})

    service = WardService.from_database(db)
    service.beds.ensure_indexes()

    for name, ward_type, capacity, prefix, features in DEMO_WARDS:
        ward = service.create_ward(Ward(name=name, type=ward_type, capacity=capacity))
        for n in range(1, capacity + 1):
            service.create_bed(Bed(
                bed_number=f"{prefix}-{n:02d}",
                ward_id=ward.id,
                bed_type=ward_type,
                features=features,
            ))
        logger.info("Seeded %s with %d beds", name, capacity)

    # One bed out of service to show the maintenance state
    general = service.get_wards("general")[0]
    last_bed = service.get_beds_by_ward(general.id)[-1]
    service.beds.update(last_bed.id, {"status": MAINTENANCE})
    return service


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed(get_database())
