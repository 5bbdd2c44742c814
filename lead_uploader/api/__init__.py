"""HTTP access to the lead management backend."""

from .client import APIError, LeadAPIClient, error_message

__all__ = ["APIError", "LeadAPIClient", "error_message"]
