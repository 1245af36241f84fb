"""HTTP API for StudyTrack."""
