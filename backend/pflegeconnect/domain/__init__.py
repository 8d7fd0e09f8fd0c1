"""Domain packages for discovery, consent, quota and scoring."""
