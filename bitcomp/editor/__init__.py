"""Structural editor over CODE/DATA memory."""
