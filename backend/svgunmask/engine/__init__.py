"""Layer peeling engine: occlusion graph, removal loop and recovery hooks."""
