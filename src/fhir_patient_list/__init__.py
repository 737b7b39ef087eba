"""FHIR Patient List.

Mock FHIR R4 Patient server, typed client and patient list controller.
"""

__version__ = "0.1.0"
