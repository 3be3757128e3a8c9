"""
App layer: 템플릿 저장소 HTTP 서버 (FastAPI).

역할:
- RestTemplatesBackend가 호출하는 REST 계약 제공
- 저장 규칙은 templates/local_backend.py에 위임
"""
