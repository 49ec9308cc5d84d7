"""Pydantic schemas for the HireOS API."""

from .base import CamelModel, PaginatedResponse, PaginationMeta, MessageResponse

__all__ = ["CamelModel", "PaginatedResponse", "PaginationMeta", "MessageResponse"]
