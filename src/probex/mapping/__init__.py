"""Field tables and the tagged Value type they read from."""
