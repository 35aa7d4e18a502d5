"""
AnaPro Platform - API
"""
