"""Tiered game outcome forecasting for scheduled MLB games."""
