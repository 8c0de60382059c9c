"""Travel agency tour and booking API."""
