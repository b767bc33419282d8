"""
API Package.

REST surface of the offboarding workflow.
"""
