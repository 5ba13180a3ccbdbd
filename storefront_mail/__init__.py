"""
Storefront Mail

Transactional email for the storefront backend: an in-process task queue with
bounded concurrency and fixed-delay retries, tiered SMTP delivery with a
simulated fallback, and an auditable attempt log.
"""

__version__ = "1.0.0"
