"""Peripherals wired onto the memory I/O port."""
