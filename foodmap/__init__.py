"""FoodMap client core: authenticated backend access, suggestions and maps."""
