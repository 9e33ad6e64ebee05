"""Business logic layer for software app.

This package contains all business logic for software packages:
- Upload authorization and record registration
- Listing records newest first
- Resolving downloads to stored files

All business logic should be implemented here, separate from
views (HTTP layer) and infrastructure (filesystem).
"""
