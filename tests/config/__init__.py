"""
Tests for configuration models and loading.
"""
