"""
Core infrastructure: logging, exceptions, issue records, paths and CLI helpers.
"""
