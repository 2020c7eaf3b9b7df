"""Shared infrastructure for the Tak engine."""
