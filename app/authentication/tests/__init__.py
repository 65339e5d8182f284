"""
Tests for authentication app.

This package contains test modules for:
- test_models.py: User and Profile model tests
- test_services.py: UserDirectoryService tests

Usage:
    pytest authentication/tests/
    pytest authentication/tests/test_models.py
"""
