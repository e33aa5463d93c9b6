"""
Middleware layer for the access-control service.

This package contains middleware components for request processing,
such as binding the caller identity to the request context.
"""
