from fastapi import APIRouter, Query

from safeprep.schemas.contacts import ContactListResponse
from safeprep.services.emergency_contacts import (
    CONTACT_TYPES,
    DEFAULT_STATE,
    NATIONAL_CONTACTS,
    STATE_CONTACTS,
    search_contacts,
)

router = APIRouter(prefix="/v1/contacts", tags=["contacts"])

_TYPE_PATTERN = "^(all|" + "|".join(CONTACT_TYPES) + ")$"


@router.get("", response_model=ContactListResponse)
def get_contacts(
    state: str = Query(default=DEFAULT_STATE),
    type: str = Query(default="all", pattern=_TYPE_PATTERN),
    q: str = Query(default="", max_length=64),
) -> ContactListResponse:
    return ContactListResponse(
        state=state,
        contacts=search_contacts(state, contact_type=type, query=q),
        national=NATIONAL_CONTACTS,
        states=sorted(STATE_CONTACTS),
    )
