"""
SCORPIO - Lightweight browser-driven web vulnerability scanner

Drives a single Playwright page against a target URL and runs pluggable
detection modules (XSS, SQL injection, TLS certificate, URL harvesting,
DOM fingerprinting) one after another.

Copyright (c) 2025
Licensed under MIT License
"""

__version__ = "1.0.0"
__author__ = "SCORPIO Team"
__status__ = "Development"
