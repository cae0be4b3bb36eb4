"""CareCircle: caregiver relationships and patient care records."""

__version__ = "0.1.0"
