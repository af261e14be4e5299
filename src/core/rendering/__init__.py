"""
Rendering Module
===============

Browser automation for screenshot generation from HTML.

Components:
- engine: Shared Chromium instance with per-request isolated pages
"""
