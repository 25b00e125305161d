"""Core domain package for slotscope.

Core contains task generation, probing, scheduling and deduplication logic
without any Playwright or SMTP-specific code, keeping the polling engine
portable and testable with scripted fakes.
"""
