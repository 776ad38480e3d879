"""Application package for the share registry service."""
