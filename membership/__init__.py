"""
DEVS Membership Portal
Colleges, tenure heads, members and event registration for a student tech society
"""

__version__ = "1.0.0"
