"""
API Layer
=========

FastAPI application and routers exposing the render service over HTTP.
"""
