from pydantic import BaseModel


class EmergencyContact(BaseModel):
    name: str
    number: str
    type: str
    available: str = "24/7"


class ContactListResponse(BaseModel):
    state: str
    contacts: list[EmergencyContact]
    national: list[EmergencyContact]
    states: list[str]
