"""Tutorbook - booking pages for independent teachers."""
