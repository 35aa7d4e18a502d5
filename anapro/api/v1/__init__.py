"""
AnaPro Platform - API v1
"""
