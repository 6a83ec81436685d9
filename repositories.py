"""
Record stores for the ``ward`` and ``bed`` collections.

Lookups return ``None`` when an id does not resolve; pymongo errors are left
to propagate to the caller.
"""

from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from pydantic import BaseModel
from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database

from database import create_document, serialize, to_object_id
from schemas import BedRecord, WardRecord, AVAILABLE, OCCUPIED


def _update_doc(fields: Dict[str, Any]) -> Dict[str, Any]:
    # None removes the field
    to_set = {k: v for k, v in fields.items() if v is not None}
    to_unset = {k: "" for k, v in fields.items() if v is None}
    to_set["updated_at"] = datetime.now(timezone.utc)
    update = {"$set": to_set}
    if to_unset:
        update["$unset"] = to_unset
    return update


class BaseRepository:
    collection_name = None
    record = None

    def __init__(self, database: Database):
        self.db = database
        self.collection = database[self.collection_name]

    def _to_record(self, doc):
        data = serialize(doc)
        return self.record(**data) if data is not None else None

    def get_by_id(self, record_id: str):
        oid = to_object_id(record_id)
        if oid is None:
            return None
        return self._to_record(self.collection.find_one({"_id": oid}))

    def find(self, filter_dict: dict = None) -> list:
        return [self._to_record(doc) for doc in self.collection.find(filter_dict or {})]

    def create(self, data: BaseModel):
        record_id = create_document(self.collection_name, data.model_dump(mode="json", exclude_none=True), database=self.db)
        return self.get_by_id(record_id)

    def update(self, record_id: str, fields: Dict[str, Any]):
        oid = to_object_id(record_id)
        if oid is None:
            return None
        doc = self.collection.find_one_and_update(
            {"_id": oid}, _update_doc(fields), return_document=ReturnDocument.AFTER
        )
        return self._to_record(doc)


class WardRepository(BaseRepository):
    collection_name = "ward"
    record = WardRecord

    def list_all(self, ward_type: Optional[str] = None) -> List[WardRecord]:
        return self.find({"type": ward_type} if ward_type else {})

    def list_with_free_capacity(self) -> List[WardRecord]:
        return [w for w in self.list_all() if w.current_occupancy < w.capacity]


class BedRepository(BaseRepository):
    collection_name = "bed"
    record = BedRecord

    def ensure_indexes(self):
        self.collection.create_index([("ward_id", ASCENDING), ("bed_number", ASCENDING)], unique=True)
        self.collection.create_index("patient_id")
        self.collection.create_index("status")

    def list_all(self) -> List[BedRecord]:
        return self.find()

    def list_by_ward(self, ward_id: str) -> List[BedRecord]:
        return self.find({"ward_id": ward_id})

    def list_available(self, bed_type: Optional[str] = None) -> List[BedRecord]:
        filter_dict = {"status": AVAILABLE}
        if bed_type:
            filter_dict["bed_type"] = bed_type
        return self.find(filter_dict)

    def find_by_occupant(self, patient_id: str) -> Optional[BedRecord]:
        return self._to_record(self.collection.find_one({"patient_id": patient_id}))

    def count_occupied(self, ward_id: str) -> int:
        return self.collection.count_documents({"ward_id": ward_id, "status": OCCUPIED})

    def transition(
        self,
        bed_id: str,
        expected_status: str,
        fields: Dict[str, Any],
        expected_patient: Optional[str] = None,
    ) -> Optional[BedRecord]:
        """
        Atomically apply ``fields`` only if the bed is still in ``expected_status``
        (and, when given, still held by ``expected_patient``).

        Returns the updated bed, or None when the bed is missing or its stored
        state no longer matches.
        """
        oid = to_object_id(bed_id)
        if oid is None:
            return None
        filter_dict = {"_id": oid, "status": expected_status}
        if expected_patient is not None:
            filter_dict["patient_id"] = expected_patient
        doc = self.collection.find_one_and_update(
            filter_dict, _update_doc(fields), return_document=ReturnDocument.AFTER
        )
        return self._to_record(doc)
