"""Monetary correction and moratory interest calculator for judgment execution."""
