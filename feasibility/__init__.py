"""Feasibility cashflow and scenario engine for real estate development projects."""
