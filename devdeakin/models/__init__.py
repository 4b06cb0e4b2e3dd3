"""
Domain models for DevDeakin
"""
