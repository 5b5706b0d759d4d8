"""Application layer: settings, signals.yaml loading and offline replay."""
