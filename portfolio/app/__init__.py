"""
Portfolio site service: public content API and the session-gated admin area.
"""
