"""Tenancy presentation layer - command line interface."""
