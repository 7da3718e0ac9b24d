"""Course notes tracker: course cards with repeating sessions and tasks kept in sync with the clock."""

__version__ = "0.1.0"
