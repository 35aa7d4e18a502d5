"""
AnaPro Platform - Database
"""
