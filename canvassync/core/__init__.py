"""
Core utilities shared by the API client and the sync pipeline.
"""
