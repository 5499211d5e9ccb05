"""Database Layer: declarative base shared by every ORM model."""
