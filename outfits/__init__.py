"""
Backend package for the outfits API.

This package provides a FastAPI application over a relational schema
(users, accounts, sessions, verification tokens, posts), an adapter that
persists an external authentication library's state, and S3-compatible
storage for post and profile images.
"""
