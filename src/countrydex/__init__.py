"""countrydex – a terminal lookup table for countries."""
