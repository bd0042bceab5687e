"""Video-to-project matching -- relevance scoring and link suggestions."""
