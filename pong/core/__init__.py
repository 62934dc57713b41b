"""Core gameplay primitives (physics, change detection, and events).

Kept free of FastAPI concerns so it can be reused by API routes, the ticker, and tests.
"""
