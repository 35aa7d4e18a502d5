"""
AnaPro Platform - Pydantic Schemas
"""
