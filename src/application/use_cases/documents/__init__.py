"""Document use cases."""

from src.application.use_cases.documents.document_access import (
    DocumentAccessContext,
    DocumentAccessPolicy,
)

__all__ = ["DocumentAccessContext", "DocumentAccessPolicy"]
