"""Command validation helpers.

Every inbound command flows through the same validator pipeline before the
processor touches room state, so rejections show up consistently in logs.
"""
