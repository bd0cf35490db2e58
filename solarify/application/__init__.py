"""Application layer: DTOs, repository protocols, services and use cases."""
