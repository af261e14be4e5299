"""
Core Business Logic
==================

Render-request lifecycle management.

Modules:
- rendering: Headless browser engine handle and screenshot capture
- cache: Content-addressed result cache with TTL expiry
- admission: Concurrency admission gate
- orchestrator: Cache, admission and engine composition per request
- lifecycle: Startup pre-warm, periodic sweeps and graceful shutdown
- context: Construction of the per-process service context
"""
