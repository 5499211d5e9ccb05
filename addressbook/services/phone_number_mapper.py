"""PhoneNumber Mapper: phone_numbers resource, filterable by contact."""

from addressbook.core.resource_schema import PHONE_NUMBER_SCHEMA
from addressbook.models.phone_number import PhoneNumber
from addressbook.services.resource_mapper import ResourceMapper


class PhoneNumberMapper(ResourceMapper):
    schema = PHONE_NUMBER_SCHEMA
    model = PhoneNumber
