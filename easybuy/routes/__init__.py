"""Routers of the local UI bridge."""
