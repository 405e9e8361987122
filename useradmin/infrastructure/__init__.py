"""
Infrastructure Layer

Adapters concretos de los puertos del dominio:
  - db/: pool PostgreSQL
  - repositories/: UserRepository (postgres, in-memory)
  - services/: retry (tenacity) y chequeo de passwords filtradas (httpx)
"""
