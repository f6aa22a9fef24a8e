"""
eventmark: time-coded event marking for media review.

Persistence and export layer: analyses with their event types stored in a
local SQLite file, and CSV export of recorded event occurrences.
"""
