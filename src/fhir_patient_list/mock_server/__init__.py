"""Mock FHIR server module.

Flask application serving the mock Patient dataset.
"""
