"""Entity Validation: presence rules checked before a record is persisted.

Invariants:
    - A value is missing when it is None or a string that is empty after strip()
    - Every missing field is reported, in declaration order
    - Phone numbers carry no validation rules
"""

from typing import Any

from addressbook.core.errors import ErrorContext, ValidationError

CONTACT_REQUIRED_FIELDS = ("name_first", "name_last")


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def missing_fields(entity: Any, required: tuple[str, ...]) -> list[str]:
    """Return the names in `required` whose value on `entity` is blank."""
    return [name for name in required if is_blank(getattr(entity, name, None))]


def validate_contact(contact: Any) -> None:
    """Raise ValidationError naming each required contact field that is blank."""
    missing = missing_fields(contact, CONTACT_REQUIRED_FIELDS)
    if missing:
        raise ValidationError(
            missing,
            ErrorContext(
                resource_type="contacts",
                resource_id=(
                    str(contact.id) if getattr(contact, "id", None) else None
                ),
            ),
        )
