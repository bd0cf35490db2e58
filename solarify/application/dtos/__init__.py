"""Application DTOs: read models and write payloads passed between layers."""
