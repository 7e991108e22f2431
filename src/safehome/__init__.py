"""
SafeHome - smart-home safety monitoring console

Devices, simulated audio ingestion, alert lifecycle, contacts, quiet
hours and detection thresholds over a live document store.
"""

__version__ = "1.0.0"
