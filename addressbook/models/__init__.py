"""ORM Models: SQLAlchemy declarative models for contacts and phone numbers.

Invariants:
    - All models inherit from Base (db/base.py)
    - Contact is the owning side; PhoneNumber holds the contact_id foreign key

Design Decisions:
    - One file per entity
    - All models imported here so string-based relationship() references
      resolve before any query runs
"""

from addressbook.models.contact import Contact  # noqa: F401
from addressbook.models.phone_number import PhoneNumber  # noqa: F401
