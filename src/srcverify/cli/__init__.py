"""srcverify command-line interface."""
