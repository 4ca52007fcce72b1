"""Shared configuration, logging and time zone helpers."""
