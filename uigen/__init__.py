"""
uigen - package detection and sandboxed preview for generated UI code.
"""
