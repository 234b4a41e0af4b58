"""Sessions, error handling and command-line mode for the kt interpreter."""
