"""Reservation engine: slot validation, availability, lifecycle, waitlist and sweeps"""
