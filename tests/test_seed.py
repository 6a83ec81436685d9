from seed import DEMO_WARDS, seed
from schemas import MAINTENANCE


def test_seed_creates_consistent_demo_data(db):
    db["auditlog"].insert_one({"action": "stale"})

    service = seed(db)

    wards = service.get_wards()
    assert len(wards) == len(DEMO_WARDS)
    assert all(w.current_occupancy == 0 for w in wards)
    assert len(service.get_all_beds()) == sum(capacity for _, _, capacity, _, _ in DEMO_WARDS)
    assert db["auditlog"].count_documents({}) == 0

    general = service.get_wards("general")[0]
    statuses = [b.status for b in service.get_beds_by_ward(general.id)]
    assert statuses.count(MAINTENANCE) == 1


def test_seed_is_repeatable(db):
    seed(db)
    service = seed(db)
    assert len(service.get_wards()) == len(DEMO_WARDS)
