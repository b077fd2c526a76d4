"""Query engine, downloads, sysroot extraction and descriptor generation."""
