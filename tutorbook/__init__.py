"""
tutorbook - availability, search, booking and pricing for an HSC tutoring marketplace.
"""

__version__ = "0.1.0"
