"""EduSpark diagram service - FastAPI sessions over the shared diagram core."""
