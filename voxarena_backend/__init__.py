"""VoxArena persona and debate management API."""
