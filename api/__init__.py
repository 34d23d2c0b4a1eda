"""
FastAPI RESTful API for the Library Catalog.

This module provides the books resource nested under authors:
- Listing and reading the books of an author
- Creating, replacing and patching books, with upsert on unknown ids
- Deleting books
"""
