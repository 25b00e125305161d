"""Adapters connecting the core ports to Playwright and SMTP."""
