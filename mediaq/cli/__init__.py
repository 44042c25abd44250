"""MediaQ command line interface."""
