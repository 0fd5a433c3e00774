"""Pydantic models for the provider APIs' JSON responses."""
