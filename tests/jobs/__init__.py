"""
Tests for the job queue, status store, service and worker.
"""
