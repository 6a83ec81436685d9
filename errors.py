"""Exceptions raised by the ward/bed lifecycle."""


class WardError(Exception):
    """Base class for ward and bed errors."""


class NotFound(WardError):
    """An identifier did not resolve to a stored record."""


class PreconditionFailed(WardError):
    """A bed is not in the state the command requires."""


class StorageFault(WardError):
    """Stored data is inconsistent or a write could not be completed."""


class BedNotFound(NotFound):
    def __init__(self, bed_id):
        super().__init__(f"Bed {bed_id} not found")
        self.bed_id = bed_id


class WardNotFound(NotFound):
    def __init__(self, ward_id):
        super().__init__(f"Ward {ward_id} not found")
        self.ward_id = ward_id


class BedNotAvailable(PreconditionFailed):
    def __init__(self, bed_id, status):
        super().__init__(f"Bed {bed_id} is not available (status: {status})")
        self.bed_id = bed_id
        self.status = status


class BedNotOccupied(PreconditionFailed):
    def __init__(self, bed_id, status):
        super().__init__(f"Bed {bed_id} has no patient to discharge (status: {status})")
        self.bed_id = bed_id
        self.status = status


class SourceNotOccupied(PreconditionFailed):
    def __init__(self, bed_id):
        super().__init__(f"Current bed {bed_id} has no patient assigned")
        self.bed_id = bed_id


class TargetNotAvailable(PreconditionFailed):
    def __init__(self, bed_id, status):
        super().__init__(f"New bed {bed_id} is not available (status: {status})")
        self.bed_id = bed_id
        self.status = status


class InvalidTransfer(PreconditionFailed):
    def __init__(self, bed_id):
        super().__init__(f"Cannot transfer a patient from bed {bed_id} to the same bed")
        self.bed_id = bed_id


class PatientAlreadyAllocated(PreconditionFailed):
    def __init__(self, patient_id, bed_id):
        super().__init__(f"Patient {patient_id} already occupies bed {bed_id}")
        self.patient_id = patient_id
        self.bed_id = bed_id


class InvalidBedState(PreconditionFailed):
    """Raised when a new bed's status and occupant disagree."""


class DanglingWardReference(StorageFault):
    def __init__(self, ward_id):
        super().__init__(f"Bed references ward {ward_id}, which does not exist")
        self.ward_id = ward_id


class DuplicateBedNumber(PreconditionFailed):
    def __init__(self, ward_id, bed_number):
        super().__init__(f"Ward {ward_id} already has a bed numbered {bed_number}")
        self.ward_id = ward_id
        self.bed_number = bed_number
