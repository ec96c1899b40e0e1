"""Service layer for the meta store"""
