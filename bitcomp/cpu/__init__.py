"""Word primitives, registers and the instruction decoder."""
