"""Core scanning pipeline: acquisition, analysis, orchestration, notification."""
