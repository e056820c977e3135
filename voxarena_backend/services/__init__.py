"""Service layer for VoxArena: normalization, validation, persistence and enrichment."""
