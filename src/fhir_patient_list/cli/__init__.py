"""Command-line interface for FHIR Patient List."""
