"""Document request enums and status lifecycle rules

State flow:
    pending → processing → pickup → completed
    any status may be set to rejected (or back to pending) by registrar staff
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional


class RequestStatus(str, Enum):
    """Registrar workflow status of a document request"""
    PENDING = "pending"          # Submitted, not yet looked at
    PROCESSING = "processing"    # Registrar is preparing the document
    PICKUP = "pickup"            # Ready for pickup at the registrar
    COMPLETED = "completed"      # Released to the requestor
    REJECTED = "rejected"        # Request denied (see remarks)


class RequestType(str, Enum):
    """Academic document being requested"""
    SF10 = "SF10"
    ENROLLMENT_CERT = "ENROLLMENT_CERT"
    DIPLOMA = "DIPLOMA"
    CAV = "CAV"
    ENG_INST = "ENG. INST."
    CERT_OF_GRAD = "CERT OF GRAD"
    OTHERS = "OTHERS"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


def status_values() -> List[str]:
    """All status values in workflow order"""
    return [status.value for status in RequestStatus]


def request_type_values() -> List[str]:
    return [request_type.value for request_type in RequestType]


def resolve_processed_at(new_status: RequestStatus, now: datetime) -> Optional[datetime]:
    """Return the processed_at value that goes with a status

    processed_at is only ever set for completed requests. Moving a request
    out of completed clears it again.

    Example:
        >>> resolve_processed_at(RequestStatus.COMPLETED, now)
        now
        >>> resolve_processed_at(RequestStatus.PENDING, now) is None
        True
    """
    if new_status == RequestStatus.COMPLETED:
        return now
    return None
