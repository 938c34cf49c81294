"""covermap: state-level coverage maps for ArcGIS REST datasets."""
