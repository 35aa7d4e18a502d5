"""
AnaPro Platform - Core
"""
