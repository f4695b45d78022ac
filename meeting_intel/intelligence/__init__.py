"""Meeting intelligence stages: extraction, refinement, generation and editing."""
