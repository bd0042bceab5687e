"""Meeting ingestion module -- artifact grouping, blob storage, and overrides.

Turns the flat list of recordings, transcripts, and summaries in the blob
store into MeetingRecords, enriched with cached analysis and manual
portfolio-relevance overrides.
"""
