"""Feature engineering: consensus odds and signal impact."""
