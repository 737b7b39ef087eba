"""
Unit tests package.

Tests for models, query engine, mock server, client, controller and CLI
in isolation; HTTP is exercised through Flask's test client or mocks.
"""
