"""API routers."""
from retreat_store.routers import admin, auth, health, store, user

__all__ = [
    "admin",
    "auth",
    "health",
    "store",
    "user",
]
