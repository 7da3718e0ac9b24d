"""
Recurrence subsystem.

Components:
- calendar_math.py: day/month/year shifts with end-of-month clamping
- due_dates.py: task deadlines, urgency, labels, advancing repeating tasks
- session_reset.py: next auto-uncheck moment of repeating sessions
- rollover.py: the periodic sweep and its scheduler
"""
