"""Maternity backend: pregnancy dating and current-pregnancy records."""
