"""statdash_api — FastAPI surface for the indicator sync and dashboard reads."""
