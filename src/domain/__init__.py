"""Domain layer: business rules that are independent of HTTP and storage.

- **users**: validation and normalization of user records
"""
