"""
AnaPro Platform - Utilities
"""
