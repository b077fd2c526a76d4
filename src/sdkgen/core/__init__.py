"""Core types shared by every sdkgen layer: errors, models, run logging."""
