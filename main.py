import logging
import os

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field
from pymongo.database import Database
from pymongo.errors import PyMongoError
from typing import List, Optional

import database
from config import API_TITLE, API_VERSION, CORS_ORIGINS, HOST, LOG_LEVEL, PORT
from database import get_database
from errors import NotFound, PreconditionFailed, StorageFault
from repositories import BedRepository
from schemas import COLLECTIONS, Bed, BedRecord, Ward, WardRecord, WardType
from services import AuditService, WardService

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title=API_TITLE, version=API_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if database.db is not None:
    BedRepository(database.db).ensure_indexes()


def get_ward_service(db: Database = Depends(get_database)) -> WardService:
    return WardService.from_database(db)


def get_audit_service(db: Database = Depends(get_database)) -> AuditService:
    return AuditService(db)


@app.exception_handler(PyMongoError)
@app.exception_handler(StorageFault)
async def storage_fault_handler(request: Request, exc: Exception):
    logger.error("Storage fault on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Storage failure, please retry later"})


# ---------- Request bodies ----------

class AllocateBedRequest(BaseModel):
    bed_id: str = Field(validation_alias=AliasChoices("bed_id", "bedId"))
    patient_id: str = Field(validation_alias=AliasChoices("patient_id", "patientId"))

class TransferPatientRequest(BaseModel):
    current_bed_id: str = Field(validation_alias=AliasChoices("current_bed_id", "currentBedId"))
    new_bed_id: str = Field(validation_alias=AliasChoices("new_bed_id", "newBedId"))

class DischargePatientRequest(BaseModel):
    bed_id: str = Field(validation_alias=AliasChoices("bed_id", "bedId"))


@app.get("/")
def read_root():
    return {"message": f"{API_TITLE} running"}

@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    db = database.db
    if db is None:
        return response
    response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
    response["database_name"] = db.name
    try:
        response["collections"] = db.list_collection_names()[:20]
        response["database"] = "✅ Connected & Working"
        response["connection_status"] = "Connected"
    except PyMongoError as e:
        response["database"] = f"⚠️ Connected but Error: {str(e)[:80]}"
    return response

# ---------- Bed lifecycle ----------

@app.post("/wards/beds/allocate", response_model=BedRecord)
def allocate_bed(
    payload: AllocateBedRequest,
    service: WardService = Depends(get_ward_service),
    audit: AuditService = Depends(get_audit_service),
    x_actor_id: Optional[str] = Header(None),
):
    try:
        bed = service.allocate_bed(payload.bed_id, payload.patient_id)
    except (NotFound, PreconditionFailed) as e:
        audit.log("allocate", payload.bed_id, "failure", actor_id=x_actor_id, error=str(e))
        raise HTTPException(status_code=400, detail=str(e))
    audit.log("allocate", bed.id, "success", actor_id=x_actor_id, patient_id=payload.patient_id)
    return bed

@app.post("/wards/beds/transfer", response_model=BedRecord)
def transfer_patient(
    payload: TransferPatientRequest,
    service: WardService = Depends(get_ward_service),
    audit: AuditService = Depends(get_audit_service),
    x_actor_id: Optional[str] = Header(None),
):
    try:
        bed = service.transfer_patient(payload.current_bed_id, payload.new_bed_id)
    except (NotFound, PreconditionFailed) as e:
        audit.log("transfer", payload.current_bed_id, "failure", actor_id=x_actor_id, error=str(e))
        raise HTTPException(status_code=400, detail=str(e))
    audit.log(
        "transfer", bed.id, "success", actor_id=x_actor_id,
        current_bed_id=payload.current_bed_id, new_bed_id=payload.new_bed_id,
    )
    return bed

@app.post("/wards/beds/discharge", response_model=BedRecord)
def discharge_patient(
    payload: DischargePatientRequest,
    service: WardService = Depends(get_ward_service),
    audit: AuditService = Depends(get_audit_service),
    x_actor_id: Optional[str] = Header(None),
):
    try:
        bed = service.discharge_patient(payload.bed_id)
    except (NotFound, PreconditionFailed) as e:
        audit.log("discharge", payload.bed_id, "failure", actor_id=x_actor_id, error=str(e))
        raise HTTPException(status_code=400, detail=str(e))
    audit.log("discharge", bed.id, "success", actor_id=x_actor_id)
    return bed

# ---------- Bed queries & provisioning ----------

@app.get("/wards/beds/available", response_model=List[BedRecord])
def get_available_beds(
    ward_type: Optional[WardType] = None,
    ward_type_alias: Optional[WardType] = Query(None, alias="wardType"),
    service: WardService = Depends(get_ward_service),
):
    return service.get_available_beds(ward_type or ward_type_alias)

@app.get("/wards/beds/ward/{ward_id}", response_model=List[BedRecord])
def get_beds_by_ward(ward_id: str, service: WardService = Depends(get_ward_service)):
    return service.get_beds_by_ward(ward_id)

@app.get("/wards/beds/patient/{patient_id}", response_model=List[BedRecord])
def get_beds_by_patient(patient_id: str, service: WardService = Depends(get_ward_service)):
    return service.get_beds_by_patient(patient_id)

@app.get("/wards/beds", response_model=List[BedRecord])
def get_all_beds(service: WardService = Depends(get_ward_service)):
    return service.get_all_beds()

@app.post("/wards/beds", response_model=BedRecord, status_code=201)
def create_bed(payload: Bed, service: WardService = Depends(get_ward_service)):
    try:
        return service.create_bed(payload)
    except (NotFound, PreconditionFailed) as e:
        raise HTTPException(status_code=400, detail=str(e))

# ---------- Wards ----------

@app.get("/wards", response_model=List[WardRecord])
def get_wards(ward_type: Optional[WardType] = Query(None, alias="type"), service: WardService = Depends(get_ward_service)):
    return service.get_wards(ward_type)

@app.get("/wards/available", response_model=List[WardRecord])
def get_wards_with_capacity(service: WardService = Depends(get_ward_service)):
    return service.get_wards_with_capacity()

@app.get("/wards/{ward_id}", response_model=WardRecord)
def get_ward(ward_id: str, service: WardService = Depends(get_ward_service)):
    try:
        return service.get_ward(ward_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

@app.post("/wards", response_model=WardRecord, status_code=201)
def create_ward(payload: Ward, service: WardService = Depends(get_ward_service)):
    return service.create_ward(payload)

# ---------- Dashboards ----------

@app.get("/dashboard/occupancy")
def dashboard_occupancy(service: WardService = Depends(get_ward_service)):
    return service.occupancy_summary()

@app.get("/schema")
def get_schema():
    # Minimal exposure so tools/viewers can read collection names
    return {"collections": COLLECTIONS}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT)
