"""
Graasp backends.
"""
