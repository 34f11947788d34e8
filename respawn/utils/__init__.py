"""
Utility functions and helpers.

- auth: session token store and request authentication dependencies
- messaging: push notification dispatch
- concurrency: per-key leases (in-process and Redis-backed)
- redis_pool: shared Redis connection pool
- deps: FastAPI dependencies returning the app's service instances
"""
