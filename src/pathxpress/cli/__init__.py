"""CLI package for pathxpress."""
