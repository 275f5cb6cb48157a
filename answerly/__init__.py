"""Question-set distribution, submission and scoring service."""
