"""Core types of the ElfProbe engine: errors, record models and the parsed-object context."""
