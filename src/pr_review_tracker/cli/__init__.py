"""Command-line interface for PR Review Tracker."""
