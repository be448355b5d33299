"""Schema Canvas command line tool."""
