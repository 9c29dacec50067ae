"""
AI Package

Gemini-backed tag suggestions for admin content.
"""
