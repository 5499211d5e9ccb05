"""Services: resource mappers and repositories between HTTP routes and the database.

Invariants:
    - Services never build HTTP responses; they return JSON:API documents
      or raise AddressBookError subclasses
"""
