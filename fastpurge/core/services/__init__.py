"""Application services: chunking, concurrent dispatch and retries."""
