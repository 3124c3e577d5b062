"""Pydantic models describing API request and response bodies."""
