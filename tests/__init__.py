"""Tests for LMS Bridge."""
