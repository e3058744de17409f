"""Shared domain components - Generic patterns and utilities."""

from cityflow.domains.shared.repository import GenericRepository
from cityflow.domains.shared.specifications import Specification

__all__ = ["GenericRepository", "Specification"]
