"""PhoneNumber ORM: a labelled number ("cell", "home") belonging to a contact.

Invariants:
    - contact_id references contacts.id; null means unlinked
    - name and phone_number are free-form and may be null
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from addressbook.db.base import Base
from addressbook.models.contact import utcnow


class PhoneNumber(Base):
    __tablename__ = "phone_numbers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    contact_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("contacts.id"), nullable=True, index=True,
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<PhoneNumber id={self.id} contact_id={self.contact_id} {self.name}>"
