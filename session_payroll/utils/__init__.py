"""Utility helpers (database connections)"""
