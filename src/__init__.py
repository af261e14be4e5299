"""
HTML Render Service
===================

An HTTP service that renders arbitrary HTML markup into PNG, JPEG or WebP
images using a shared headless Chromium instance driven by Playwright.

This package provides:
- FastAPI REST endpoints for HTTP access
- Admission control, result caching and browser lifecycle management
- Structured logging and environment-based configuration
"""

__version__ = "2.1.0"
