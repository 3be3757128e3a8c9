"""
FastAPI Routes.

API 라우트 (REST, JSON)
"""

from . import templates

__all__ = ["templates"]
