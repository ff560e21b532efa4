"""
Tests for the processing engines, presets and orchestrator.
"""
