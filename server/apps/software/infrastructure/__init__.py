"""Infrastructure layer for software app.

This package contains integrations with the local filesystem:
- JSON metadata store
- Upload directory storage backend
- Streaming multipart upload handler
- Filename generation and validation

Keep infrastructure concerns separate from business logic.
"""
