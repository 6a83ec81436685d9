"""
Ward/bed lifecycle: allocation, transfer and discharge of patients, with the
owning wards' occupancy recomputed after every bed status change.

Bed status changes go through ``BedRepository.transition`` so that two
requests racing for the same bed cannot both succeed.
"""

import logging
from typing import Optional, List, Dict, Any

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from config import OCCUPANCY_RETRIES
from database import create_document
from errors import (
    BedNotAvailable,
    BedNotFound,
    BedNotOccupied,
    DanglingWardReference,
    DuplicateBedNumber,
    InvalidBedState,
    InvalidTransfer,
    PatientAlreadyAllocated,
    SourceNotOccupied,
    TargetNotAvailable,
    WardNotFound,
)
from repositories import BedRepository, WardRepository
from schemas import AuditLog, Bed, BedRecord, Ward, WardRecord, AVAILABLE, OCCUPIED

logger = logging.getLogger(__name__)

_RELEASE = {"status": AVAILABLE, "patient_id": None}


class AuditService:
    def __init__(self, database: Database):
        self.db = database

    def log(self, action: str, entity_id: Optional[str], outcome: str, actor_id: Optional[str] = None, **meta) -> str:
        entry = AuditLog(
            actor_id=actor_id,
            action=action,
            entity="bed",
            entity_id=entity_id,
            meta={"status": outcome, **meta},
        )
        return create_document("auditlog", entry, database=self.db)


class WardService:
    def __init__(self, wards: WardRepository, beds: BedRepository, retries: int = OCCUPANCY_RETRIES):
        self.wards = wards
        self.beds = beds
        self.retries = max(1, retries)

    @classmethod
    def from_database(cls, database: Database, **kwargs) -> "WardService":
        return cls(WardRepository(database), BedRepository(database), **kwargs)

    # ---------- Lifecycle commands ----------

    def allocate_bed(self, bed_id: str, patient_id: str) -> BedRecord:
        logger.info("Allocating bed %s to patient %s", bed_id, patient_id)

        bed = self._require_bed(bed_id)
        if bed.status != AVAILABLE:
            raise self._rejected(BedNotAvailable(bed_id, bed.status))

        held = self.beds.find_by_occupant(patient_id)
        if held is not None:
            raise self._rejected(PatientAlreadyAllocated(patient_id, held.id))

        updated = self.beds.transition(bed_id, AVAILABLE, {"status": OCCUPIED, "patient_id": patient_id})
        if updated is None:
            # Lost the race to another writer between the read and the write
            raise self._rejected(BedNotAvailable(bed_id, self._require_bed(bed_id).status))

        self.recompute_occupancy(updated.ward_id)
        return updated

    def transfer_patient(self, current_bed_id: str, new_bed_id: str) -> BedRecord:
        logger.info("Transferring patient from bed %s to %s", current_bed_id, new_bed_id)

        if current_bed_id == new_bed_id:
            raise self._rejected(InvalidTransfer(current_bed_id))

        source = self._require_bed(current_bed_id)
        if source.status != OCCUPIED or not source.patient_id:
            raise self._rejected(SourceNotOccupied(current_bed_id))

        target = self._require_bed(new_bed_id)
        if target.status != AVAILABLE:
            raise self._rejected(TargetNotAvailable(new_bed_id, target.status))

        patient_id = source.patient_id

        # Claim the new bed first so the patient always holds a bed
        claimed = self.beds.transition(new_bed_id, AVAILABLE, {"status": OCCUPIED, "patient_id": patient_id})
        if claimed is None:
            raise self._rejected(TargetNotAvailable(new_bed_id, self._require_bed(new_bed_id).status))

        released = self.beds.transition(current_bed_id, OCCUPIED, _RELEASE, expected_patient=patient_id)
        if released is None:
            if self.beds.transition(new_bed_id, OCCUPIED, _RELEASE, expected_patient=patient_id) is None:
                logger.error("Could not release bed %s after failed transfer of patient %s", new_bed_id, patient_id)
            raise self._rejected(SourceNotOccupied(current_bed_id))

        for ward_id in dict.fromkeys([source.ward_id, claimed.ward_id]):
            self.recompute_occupancy(ward_id)
        return claimed

    def discharge_patient(self, bed_id: str) -> BedRecord:
        logger.info("Discharging patient from bed %s", bed_id)

        bed = self._require_bed(bed_id)
        if bed.status != OCCUPIED:
            raise self._rejected(BedNotOccupied(bed_id, bed.status))

        updated = self.beds.transition(bed_id, OCCUPIED, _RELEASE)
        if updated is None:
            raise self._rejected(BedNotOccupied(bed_id, self._require_bed(bed_id).status))

        self.recompute_occupancy(updated.ward_id)
        return updated

    def recompute_occupancy(self, ward_id: str) -> int:
        """
        Overwrite the ward's ``current_occupancy`` with the number of its
        occupied beds.

        A full overwrite rather than an increment, so calling it again is
        harmless and repairs any earlier missed update. Storage errors are
        retried up to ``self.retries`` attempts, re-counting each time.
        """
        for attempt in range(1, self.retries + 1):
            try:
                occupied = self.beds.count_occupied(ward_id)
                ward = self.wards.update(ward_id, {"current_occupancy": occupied})
                break
            except PyMongoError as exc:
                if attempt == self.retries:
                    logger.error("Giving up on occupancy for ward %s after %d attempts: %s", ward_id, attempt, exc)
                    raise
                logger.warning("Occupancy update for ward %s failed (attempt %d): %s", ward_id, attempt, exc)

        if ward is None:
            logger.error("Ward %s referenced by a bed does not exist", ward_id)
            raise DanglingWardReference(ward_id)

        logger.debug("Ward %s occupancy is %d", ward_id, occupied)
        return occupied

    # ---------- Queries ----------

    def get_available_beds(self, ward_type: Optional[str] = None) -> List[BedRecord]:
        return self.beds.list_available(ward_type)

    def get_beds_by_ward(self, ward_id: str) -> List[BedRecord]:
        return self.beds.list_by_ward(ward_id)

    def get_beds_by_patient(self, patient_id: str) -> List[BedRecord]:
        bed = self.beds.find_by_occupant(patient_id)
        return [bed] if bed else []

    def get_all_beds(self) -> List[BedRecord]:
        return self.beds.list_all()

    def get_ward(self, ward_id: str) -> WardRecord:
        ward = self.wards.get_by_id(ward_id)
        if ward is None:
            raise WardNotFound(ward_id)
        return ward

    def get_wards(self, ward_type: Optional[str] = None) -> List[WardRecord]:
        return self.wards.list_all(ward_type)

    def get_wards_with_capacity(self) -> List[WardRecord]:
        return self.wards.list_with_free_capacity()

    def occupancy_summary(self) -> Dict[str, Any]:
        wards = self.wards.list_all()
        total = sum(w.capacity for w in wards)
        occupied = sum(w.current_occupancy for w in wards)
        return {
            "total_capacity": total,
            "occupied": occupied,
            "bor": (occupied / total * 100) if total else 0,
            "wards": [
                {"id": w.id, "name": w.name, "type": w.type, "capacity": w.capacity, "occupied": w.current_occupancy}
                for w in wards
            ],
        }

    # ---------- Provisioning ----------

    def create_ward(self, ward: Ward) -> WardRecord:
        created = self.wards.create(ward.model_copy(update={"current_occupancy": 0}))
        logger.info("Created ward %s (%s)", created.id, created.name)
        return created

    def create_bed(self, bed: Bed) -> BedRecord:
        if self.wards.get_by_id(bed.ward_id) is None:
            raise WardNotFound(bed.ward_id)
        if bed.status == OCCUPIED or bed.patient_id:
            raise InvalidBedState("New beds are created without an occupant; use allocate instead")
        try:
            created = self.beds.create(bed)
        except DuplicateKeyError:
            raise DuplicateBedNumber(bed.ward_id, bed.bed_number)
        logger.info("Created bed %s in ward %s", created.bed_number, created.ward_id)
        self.recompute_occupancy(created.ward_id)
        return created

    # ---------- Helpers ----------

    def _require_bed(self, bed_id: str) -> BedRecord:
        bed = self.beds.get_by_id(bed_id)
        if bed is None:
            raise self._rejected(BedNotFound(bed_id))
        return bed

    @staticmethod
    def _rejected(error):
        logger.warning("%s", error)
        return error
