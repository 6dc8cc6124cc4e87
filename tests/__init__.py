"""Test suite for the inline-steps package.

This package contains unit and integration tests validating markup
recognition, step binding, statement rendering, document patching,
request handling, and test specification validation.
"""
