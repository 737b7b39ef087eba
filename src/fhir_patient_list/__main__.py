"""Entry point for running fhir_patient_list as a module.

This allows the package to be executed as:
    python -m fhir_patient_list
"""

from fhir_patient_list.cli.main import cli

if __name__ == "__main__":
    cli()
