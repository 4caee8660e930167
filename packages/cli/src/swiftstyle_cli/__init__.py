"""swiftstyle command line interface."""
