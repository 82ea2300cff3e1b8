"""Parsing of pasted, spreadsheet and free-form trade input."""
