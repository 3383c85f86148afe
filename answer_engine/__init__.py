"""Answer-capture engine for timed test attempts."""
