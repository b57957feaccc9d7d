"""
Signage Layout Service
"""
