"""JSON mirror of the task set (`_METAINFO.json`) and its background export queue."""
