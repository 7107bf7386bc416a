"""
Mealth — a mental-wellness companion built on livesync.

Every screen renders live views of document-store collections; every user
action is a single write whose result arrives through the next snapshot.
"""
