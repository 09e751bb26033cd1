"""
Core modules for stylemix.

This package contains the core business logic for:
- Configuration management
- Request payload building and data URI decoding
- API key validation and storage
- Prompt synthesis and image synthesis
- Error classification
- Generation rounds (generate / enhance)
"""
