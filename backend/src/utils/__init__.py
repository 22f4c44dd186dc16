"""
Utility modules for the diagnostic center backend.

This package contains shared helpers used across the application:
datetime handling, identifier formatting, QR payloads and response shaping.
"""
