"""
Pathway API

FastAPI service over the admission snapshot.
"""
