"""
Health endpoints.
"""
