"""Shared pytest fixture plugins for Orchestra tests."""
