"""Tests for the Octopus Intelligent reconciler."""
