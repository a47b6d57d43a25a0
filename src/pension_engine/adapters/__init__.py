"""Adapters implementing domain ports against external systems."""
