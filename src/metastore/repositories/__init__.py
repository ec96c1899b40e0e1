"""Storage backends for the meta store"""
