"""Source adapters: everything that can produce a raw status snapshot."""
