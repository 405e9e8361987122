"""DTOs Pydantic de la API HTTP; sin dependencias de infraestructura."""
