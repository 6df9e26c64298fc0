"""
Core expansion engine: front end (tokens, syntax, parser), directive parsing,
signature rewriting, variant and bridge synthesis, and orchestration.
"""
