"""API routers for StudyTrack."""
