"""Fake services for trying probex locally."""
