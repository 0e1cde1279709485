"""Persistence of soft tokens: one record file per named token."""
