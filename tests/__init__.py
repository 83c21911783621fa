"""
Test suite for the Clinic Backend.

Contains unit and integration tests for authentication, authorization and
appointment scheduling.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
