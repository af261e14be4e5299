"""
Data Models
===========

Pydantic models for render options, requests and API responses.
"""
