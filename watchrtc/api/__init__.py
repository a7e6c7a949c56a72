"""
Wire schemas and the signaling endpoint.
"""
