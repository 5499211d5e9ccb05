"""Contact Mapper: contacts resource, with name presence validation."""

from typing import Any

from addressbook.core.resource_schema import CONTACT_SCHEMA
from addressbook.core.validation import validate_contact
from addressbook.models.contact import Contact
from addressbook.services.resource_mapper import ResourceMapper


class ContactMapper(ResourceMapper):
    schema = CONTACT_SCHEMA
    model = Contact

    def validate(self, entity: Any) -> None:
        validate_contact(entity)
