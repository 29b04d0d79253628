"""
Test suite for the billboard bulk upload service.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_upload_session_service.py -v
"""
