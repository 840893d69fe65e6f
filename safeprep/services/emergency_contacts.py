from safeprep.core.error_codes import ErrorCode
from safeprep.core.errors import ApiError
from safeprep.schemas.contacts import EmergencyContact

CONTACT_TYPES = ("police", "fire", "medical", "disaster", "emergency")
DEFAULT_STATE = "Gujarat"

NATIONAL_CONTACTS = [
    EmergencyContact(name="Police", number="100", type="police"),
    EmergencyContact(name="Fire Services", number="101", type="fire"),
    EmergencyContact(name="Medical Emergency", number="108", type="medical"),
    EmergencyContact(name="Disaster Management", number="1077", type="disaster"),
]

STATE_CONTACTS: dict[str, list[EmergencyContact]] = {
    "Gujarat": [
        EmergencyContact(name="Gujarat Police Control Room", number="100", type="police"),
        EmergencyContact(name="Fire Emergency Services", number="101", type="fire"),
        EmergencyContact(name="Medical Emergency", number="108", type="medical"),
        EmergencyContact(name="Disaster Management Cell", number="1077", type="disaster"),
        EmergencyContact(name="Gujarat Emergency Services", number="079-23251900", type="emergency"),
        EmergencyContact(name="Ahmedabad Fire Station", number="079-25506464", type="fire"),
        EmergencyContact(name="Civil Hospital Ahmedabad", number="079-22682671", type="medical"),
        EmergencyContact(name="Traffic Police Helpline", number="103", type="police"),
    ],
    "Maharashtra": [
        EmergencyContact(name="Maharashtra Police", number="100", type="police"),
        EmergencyContact(name="Mumbai Fire Brigade", number="101", type="fire"),
        EmergencyContact(name="Medical Emergency", number="108", type="medical"),
        EmergencyContact(name="Disaster Management", number="022-22027990", type="disaster"),
        EmergencyContact(name="Mumbai Police Control", number="022-22621855", type="police"),
    ],
    "Rajasthan": [
        EmergencyContact(name="Rajasthan Police", number="100", type="police"),
        EmergencyContact(name="Fire Services", number="101", type="fire"),
        EmergencyContact(name="Medical Emergency", number="108", type="medical"),
        EmergencyContact(name="State Emergency Response", number="0141-2921111", type="disaster"),
    ],
    "Tamil Nadu": [
        EmergencyContact(name="Tamil Nadu Police", number="100", type="police"),
        EmergencyContact(name="Fire & Rescue Services", number="101", type="fire"),
        EmergencyContact(name="Medical Emergency", number="108", type="medical"),
        EmergencyContact(name="Chennai Disaster Management", number="044-25619492", type="disaster"),
    ],
}


def search_contacts(state: str, contact_type: str = "all", query: str = "") -> list[EmergencyContact]:
    contacts = STATE_CONTACTS.get(state)
    if contacts is None:
        raise ApiError(status_code=404, code=ErrorCode.REGION_NOT_FOUND, message=f"No contacts for {state}")

    needle = query.strip().lower()
    return [
        contact
        for contact in contacts
        if (contact_type == "all" or contact.type == contact_type)
        and (needle in contact.name.lower() or needle in contact.number)
    ]
