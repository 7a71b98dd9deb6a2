"""Runtime scripts copied into the install directory."""
