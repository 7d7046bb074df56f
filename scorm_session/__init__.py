"""Session lifecycle and suspend-data persistence for a SCORM content object."""
