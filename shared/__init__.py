"""Shared foundation code used by the Sheet Geocoder tools."""
