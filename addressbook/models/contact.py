"""Contact ORM: a person in the address book, owner of phone numbers.

Invariants:
    - id is an autoincrement integer primary key
    - name_first/name_last are nullable at the column level; presence is
      enforced by core.validation before every flush
    - phone_numbers ordered by PhoneNumber.id (insertion order)

Design Decisions:
    - cascade "save-update, merge, delete" without delete-orphan: deleting a
      contact deletes its phone numbers, unlinking one only nulls contact_id
    - lazy="selectin": linkage is always serialized, so the collection is
      loaded with the parent query instead of per row
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, select
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import Select

from addressbook.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Contact(Base):
    __tablename__ = "contacts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name_first: Mapped[str | None] = mapped_column(String(255), nullable=True)
    name_last: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    twitter: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    phone_numbers: Mapped[list["PhoneNumber"]] = relationship(
        "PhoneNumber",
        order_by="PhoneNumber.id",
        cascade="save-update, merge, delete",
        lazy="selectin",
    )

    def phone_numbers_select(self) -> Select:
        """A re-executable query over this contact's phone numbers, in insertion order."""
        from addressbook.models.phone_number import PhoneNumber

        return (
            select(PhoneNumber)
            .where(PhoneNumber.contact_id == self.id)
            .order_by(PhoneNumber.id)
        )

    def __repr__(self) -> str:
        return f"<Contact id={self.id} {self.name_first} {self.name_last}>"
