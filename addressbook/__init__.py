"""Address Book API: JSON:API backend for contacts and their phone numbers.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
