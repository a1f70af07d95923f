"""openjdk-api: cached, normalized view of AdoptOpenJDK release metadata."""
