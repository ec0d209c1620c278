"""
Shared constants for the test suite.
"""
API = "/api/v1"
TEST_SECRET = "test-secret-key-with-at-least-32-characters!"
DEFAULT_PASSWORD = "secret123"
