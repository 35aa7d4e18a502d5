"""
AnaPro Platform - API v1 Endpoints
"""
