"""
Templates layer: 이메일 템플릿 관리 모듈.

역할:
- backend capability (backend.py)
- 로컬/메모리 저장소 (local_backend.py), REST 클라이언트 (rest_backend.py)
- backend 선택 (factory.py)
- 클라이언트 상태 관리자 (manager.py)
"""

from .backend import TemplatesBackend, validate_email, validate_save_input
from .factory import get_templates_backend
from .local_backend import FileTemplatesBackend, InMemoryTemplatesBackend
from .manager import TemplateManager
from .rest_backend import RestTemplatesBackend

__all__ = [
    # backend
    "TemplatesBackend",
    "validate_email",
    "validate_save_input",
    # implementations
    "FileTemplatesBackend",
    "InMemoryTemplatesBackend",
    "RestTemplatesBackend",
    "get_templates_backend",
    # manager
    "TemplateManager",
]
