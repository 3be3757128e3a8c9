"""
Domain Constants: 템플릿 저장소 전역 상수.

id 길이, 버전/썸네일 크기 제한, 저장 파일명 등.
"""

# =============================================================================
# Identifiers
# =============================================================================

TEMPLATE_ID_LENGTH = 10
VERSION_ID_LENGTH = 8

# =============================================================================
# Versions / Preview
# =============================================================================

# 버전별 html 미리보기 길이
HTML_SNIPPET_LENGTH = 500

# 썸네일 텍스트 요약 길이
THUMBNAIL_TEXT_LENGTH = 120
THUMBNAIL_PREFIX = "data:text/plain;base64,"

# clone 시 이름 접미사
CLONE_NAME_SUFFIX = " Copy"

# =============================================================================
# Storage
# =============================================================================

STORE_FILENAME = "templates.json"
STORE_LOCK_TIMEOUT_SECONDS = 10.0

# =============================================================================
# Backend modes
# =============================================================================

BACKEND_LOCAL = "local"
BACKEND_MEMORY = "memory"
BACKEND_REST = "rest"
BACKEND_MODES = (BACKEND_LOCAL, BACKEND_MEMORY, BACKEND_REST)
