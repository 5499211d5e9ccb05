"""Pydantic Schemas: structural validation of JSON:API request documents.

Invariants:
    - Schemas check document shape only; which attributes and relationships
      a type accepts is decided by the resource mapper

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
