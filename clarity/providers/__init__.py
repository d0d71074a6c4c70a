"""Concrete adapters for the interfaces in :mod:`clarity.interfaces`."""
