"""Repository adapters for UserRepository (postgres, in_memory)."""
