"""Frame sources, annotation and the capture-and-analyze pipeline."""
