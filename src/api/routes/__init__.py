"""API route modules.

- **users**: CRUD operations on the users resource
"""
