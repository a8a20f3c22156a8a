"""10xCards command-line tools."""
