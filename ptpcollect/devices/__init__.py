"""Fetchers and parsers for device info, DPLL, GNSS and PMC values."""