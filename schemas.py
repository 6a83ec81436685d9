"""
Database Schemas for the Ward & Bed Allocation API

Each Pydantic model represents a MongoDB collection. The collection name is the
lowercase of the class name, e.g., Ward -> "ward", Bed -> "bed".

Records read back from the database carry their string ``id`` and timestamps
(``WardRecord``, ``BedRecord``).
"""

from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Dict, Any
from datetime import datetime

# ---------- Shared Types ----------

WardType = Literal["icu", "general", "private", "emergency"]
BedStatus = Literal["available", "occupied", "maintenance"]

AVAILABLE = "available"
OCCUPIED = "occupied"
MAINTENANCE = "maintenance"

# ---------- Core Collections ----------

class Ward(BaseModel):
    name: str
    type: WardType
    capacity: int = Field(..., gt=0, description="Maximum number of beds")
    current_occupancy: int = Field(0, ge=0, description="Occupied beds, recomputed after every bed change")

class Bed(BaseModel):
    bed_number: str = Field(..., description="Unique within its ward")
    ward_id: str
    bed_type: WardType
    status: BedStatus = AVAILABLE
    patient_id: Optional[str] = Field(None, description="Set only while the bed is occupied")
    features: List[str] = Field(default_factory=list, description="Ventilator, monitor, oxygen, etc.")

class AuditLog(BaseModel):
    actor_id: Optional[str] = None
    action: str
    entity: str
    entity_id: Optional[str] = None
    meta: Dict[str, Any] = Field(default_factory=dict)

# ---------- Stored Records ----------

class WardRecord(Ward):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class BedRecord(Bed):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

COLLECTIONS = ["ward", "bed", "auditlog"]
