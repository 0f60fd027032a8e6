"""Shared Kernel module.

Components every bounded context agrees to depend on. Kept deliberately
small; changes here affect every context.
"""
