"""HTTP API for uploading spreadsheets and downloading CWR files."""
