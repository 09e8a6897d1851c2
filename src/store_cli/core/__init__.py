"""Addressing and dispatch layer for store-cli."""
