"""Test fixture package for scrapegate.

Contains fixtures for:
- The FastAPI application and ASGI clients
- Scripted remote job APIs
"""
