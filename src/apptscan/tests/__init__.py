"""Tests for the apptscan package."""
