"""Tilbot command line interface."""
