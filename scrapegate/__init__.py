"""Scrapegate: REST gateway for scraping and API-wrapping services."""
