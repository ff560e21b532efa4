"""Core application infrastructure for mediaflow."""
