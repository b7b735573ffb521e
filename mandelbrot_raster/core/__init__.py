"""Coordinate mapping, escape-time evaluation and supersampling."""
