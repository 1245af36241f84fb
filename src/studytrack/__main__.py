"""Main entry point for the StudyTrack CLI.

Usage:
    python -m studytrack --help
    studytrack --help  # If installed via pip/uv
"""

from studytrack.cli import main

if __name__ == "__main__":
    main()
