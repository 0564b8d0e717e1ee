"""Utilities module - password hashing and service errors."""
