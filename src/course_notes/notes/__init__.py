"""
Note subsystem.

Components:
- note_models.py: data structures (Note, Session, Task and their enums)
- migration.py: one-shot normalization of stored records (legacy fields, defaults)
- note_store.py: SQLite key-value storage of the whole collection
- note_api.py: user-initiated edits (read store -> mutate -> write store)
"""
