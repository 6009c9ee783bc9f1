"""
Process and archive helpers for the filebox backend.
"""
