"""ClinicDesk - multi-tenant clinic scheduling service."""

__version__ = "0.1.0"
